from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gostly.logging_config import get_logger, mask_sender
from gostly.models import MessageLog

logger = get_logger("message_log_service")


def save_message_log(
    db: Session,
    property_id: UUID,
    from_number: str,
    to_number: Optional[str],
    guest_message: str,
    bot_reply: str,
) -> Optional[MessageLog]:
    """
    Append the audit row for one handled message and commit.

    Returns None if the write failed; the failure is logged, never raised.
    """
    entry = MessageLog(
        property_id=property_id,
        from_number=from_number,
        to_number=to_number,
        guest_message=guest_message,
        bot_reply=bot_reply,
        created_at=datetime.now(timezone.utc),
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Failed to save message log: {e}",
            extra={"context": {"property_id": str(property_id), "sender": mask_sender(from_number)}},
        )
        return None
    return entry


def list_property_messages(
    db: Session,
    property_id: UUID,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[MessageLog], int]:
    """Newest-first page of a property's log plus the total count."""
    query = db.query(MessageLog).filter(MessageLog.property_id == property_id)
    total = query.count()
    rows = query.order_by(MessageLog.created_at.desc()).offset(offset).limit(limit).all()
    return rows, total
