import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from gostly.database import Base


class Handoff(Base):
    __tablename__ = "handoffs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id = Column(Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    from_number = Column(Text, nullable=False)
    guest_message = Column(Text, nullable=False)
    trigger = Column(String(50), nullable=False)  # explicit_request, fallback_reply
    handoff_email = Column(Text)  # null when the host has no address configured
    created_at = Column(DateTime(timezone=True), nullable=False)

    property = relationship("Property", back_populates="handoffs")
