from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from gostly.services.property_service import is_valid_code, normalize_code


class PropertyCreate(BaseModel):
    owner_id: UUID
    code: str
    name: str
    knowledge_text: str
    languages: str = "auto"
    handoff_email: Optional[str] = None

    @field_validator("code", mode="before")
    @classmethod
    def normalize_property_code(cls, value: object) -> str:
        code = normalize_code(str(value or ""))
        if not is_valid_code(code):
            raise ValueError("code must be 3-20 letters, digits, '-' or '_'")
        return code

    @field_validator("name", "knowledge_text")
    @classmethod
    def require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class PropertyUpdate(BaseModel):
    name: Optional[str] = None
    knowledge_text: Optional[str] = None
    languages: Optional[str] = None
    handoff_email: Optional[str] = None

    @field_validator("name", "knowledge_text")
    @classmethod
    def reject_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("must not be empty")
        return value


class PropertyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    code: str
    name: str
    knowledge_text: str
    languages: str
    handoff_email: Optional[str] = None
    created_at: datetime


class MessageLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    from_number: str
    to_number: Optional[str] = None
    guest_message: str
    bot_reply: str
    created_at: datetime


class MessagePage(BaseModel):
    total: int
    limit: int
    offset: int
    items: list[MessageLogResponse]


class UsageSummaryResponse(BaseModel):
    owner_id: UUID
    month: str
    plan: Optional[str] = None
    limit: int
    used: int
    active: bool
    current_period_end: Optional[datetime] = None
