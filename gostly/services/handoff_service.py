import html
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from gostly.logging_config import get_logger
from gostly.models import Handoff, Property
from gostly.services.email_service import Mailer

logger = get_logger("handoff_service")


@dataclass
class HandoffNotice:
    handoff_email: Optional[str]
    property_name: str
    property_code: str
    from_number: str
    guest_message: str
    trigger: str


def create_handoff(
    db: Session,
    prop: Property,
    from_number: str,
    guest_message: str,
    trigger: str,
) -> Handoff:
    """Append a handoff record. The caller commits."""
    handoff = Handoff(
        property_id=prop.id,
        from_number=from_number,
        guest_message=guest_message,
        trigger=trigger,
        handoff_email=prop.handoff_email,
        created_at=datetime.now(timezone.utc),
    )
    db.add(handoff)
    db.flush()
    return handoff


def build_handoff_email(property_name: str, from_number: str, guest_message: str) -> tuple[str, str]:
    """Return (subject, html body) for the host notification."""
    subject = f"Guest question for {property_name}"
    body = (
        f"<p><strong>Property:</strong> {html.escape(property_name)}</p>\n"
        f"<p><strong>Guest number:</strong> {html.escape(from_number or 'unknown')}</p>\n"
        "<p><strong>Message:</strong></p>\n"
        f"<blockquote>{html.escape(guest_message)}</blockquote>\n"
        "<p>Reply to the guest directly in WhatsApp.</p>"
    )
    return subject, body


def send_handoff_email(mailer: Mailer, notice: HandoffNotice) -> bool:
    """
    Notify the host about an escalated question.

    No address configured is a silent no-op. Delivery failures are logged and swallowed:
    the guest already has their reply.
    """
    if not notice.handoff_email:
        logger.info(
            "No handoff email configured, host not notified",
            extra={"context": {"property": notice.property_code}},
        )
        return False

    subject, body = build_handoff_email(notice.property_name, notice.from_number, notice.guest_message)
    try:
        sent = mailer.send(notice.handoff_email, subject, body)
    except Exception as e:
        logger.error(
            f"Handoff email failed: {e}",
            extra={"context": {"property": notice.property_code, "trigger": notice.trigger}},
        )
        return False

    if sent:
        logger.info("Handoff email sent", extra={"context": {"property": notice.property_code}})
    return sent
