import uuid

from sqlalchemy import Column, DateTime, Text, Uuid
from sqlalchemy.orm import relationship

from gostly.database import Base


class Property(Base):
    __tablename__ = "properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, nullable=False, index=True)
    code = Column(Text, nullable=False, unique=True)  # uppercase routing key, e.g. ANA123
    name = Column(Text, nullable=False)
    knowledge_text = Column(Text, nullable=False)
    languages = Column(Text, nullable=False, default="auto")
    handoff_email = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True))

    messages = relationship("MessageLog", back_populates="property", passive_deletes=True)
    handoffs = relationship("Handoff", back_populates="property", passive_deletes=True)
