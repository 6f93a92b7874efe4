from sqlalchemy import Column, DateTime, Integer, Text, Uuid

from gostly.database import Base


class BillingProfile(Base):
    __tablename__ = "billing_profiles"

    user_id = Column(Uuid, primary_key=True)
    plan = Column(Text)  # free, starter, pro, business
    monthly_limit = Column(Integer, nullable=False, default=0)  # 0 = blocked
    stripe_customer_id = Column(Text)
    stripe_subscription_id = Column(Text)
    stripe_status = Column(Text)
    current_period_end = Column(DateTime(timezone=True))  # trial or period end
    created_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True))
