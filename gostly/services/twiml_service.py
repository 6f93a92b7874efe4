from xml.sax.saxutils import escape as xml_escape

from gostly.schemas.whatsapp import InboundMessage

TWIML_CONTENT_TYPE = "text/xml"

_QUOTE_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(text: str) -> str:
    return xml_escape(text or "", _QUOTE_ENTITIES)


def build_message_response(reply: str) -> str:
    """Wrap a reply in a TwiML envelope with a single <Message>."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        "<Response><Message>" + escape_xml(reply) + "</Message></Response>"
    )


def parse_inbound_form(form: dict) -> InboundMessage:
    """Map Twilio's form fields onto an InboundMessage; absent fields become empty."""
    to_number = (form.get("To") or "").strip() or None
    return InboundMessage(
        body=str(form.get("Body") or ""),
        from_number=str(form.get("From") or "").strip(),
        to_number=to_number,
    )
