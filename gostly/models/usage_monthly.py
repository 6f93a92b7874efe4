from sqlalchemy import Column, DateTime, Integer, String, Uuid

from gostly.database import Base


class UsageMonthly(Base):
    __tablename__ = "usage_monthly"

    user_id = Column(Uuid, primary_key=True)
    month = Column(String(7), primary_key=True)  # YYYY-MM, UTC
    used = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True))
