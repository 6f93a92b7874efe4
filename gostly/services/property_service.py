import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from gostly.models import Handoff, MessageLog, Property

CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,20}$")
GUEST_MESSAGE_PATTERN = re.compile(r"^\s*([A-Za-z0-9_-]{3,20})\s*:\s*(.+)\Z")

EDITABLE_FIELDS = ("name", "knowledge_text", "languages", "handoff_email")


@dataclass
class ParsedMessage:
    code: str
    text: str


def normalize_code(raw: str) -> str:
    """Uppercase a property code and drop any whitespace inside it."""
    return re.sub(r"\s+", "", raw or "").upper()


def is_valid_code(code: str) -> bool:
    return bool(CODE_PATTERN.match(code or ""))


def parse_guest_message(body: str) -> Optional[ParsedMessage]:
    """
    Split `CODE: question` into its parts. Returns None when the prefix is missing.

    The question is a single line; a body spanning several lines after the colon does
    not match. Whitespace after the colon still matches and yields an empty question.
    """
    match = GUEST_MESSAGE_PATTERN.match(body or "")
    if not match:
        return None
    return ParsedMessage(code=match.group(1).upper(), text=match.group(2).strip())


def get_property_by_code(db: Session, code: str) -> Optional[Property]:
    return db.query(Property).filter(Property.code == normalize_code(code)).first()


def create_property(
    db: Session,
    owner_id: UUID,
    code: str,
    name: str,
    knowledge_text: str,
    languages: str = "auto",
    handoff_email: Optional[str] = None,
) -> Property:
    """Insert a property. The caller commits and handles duplicate codes."""
    now = datetime.now(timezone.utc)
    prop = Property(
        owner_id=owner_id,
        code=normalize_code(code),
        name=name.strip(),
        knowledge_text=knowledge_text.strip(),
        languages=(languages or "auto").strip() or "auto",
        handoff_email=(handoff_email or "").strip() or None,
        created_at=now,
        updated_at=now,
    )
    db.add(prop)
    db.flush()
    return prop


def update_property(db: Session, prop: Property, changes: dict) -> Property:
    for field, value in changes.items():
        if field not in EDITABLE_FIELDS:
            continue
        if field == "handoff_email":
            value = (value or "").strip() or None
        elif field == "languages":
            value = (value or "auto").strip() or "auto"
        elif isinstance(value, str):
            value = value.strip()
        setattr(prop, field, value)
    prop.updated_at = datetime.now(timezone.utc)
    db.flush()
    return prop


def delete_property(db: Session, prop: Property) -> None:
    """Delete a property together with its message log and handoffs."""
    db.query(MessageLog).filter(MessageLog.property_id == prop.id).delete(synchronize_session=False)
    db.query(Handoff).filter(Handoff.property_id == prop.id).delete(synchronize_session=False)
    db.delete(prop)
    db.flush()
