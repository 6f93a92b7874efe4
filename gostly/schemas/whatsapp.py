from typing import Optional

from pydantic import BaseModel


class InboundMessage(BaseModel):
    """Inbound WhatsApp message as delivered by Twilio's form webhook."""

    body: str = ""
    from_number: str = ""
    to_number: Optional[str] = None
