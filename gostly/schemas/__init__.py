from gostly.schemas.property import PropertyCreate, PropertyResponse, PropertyUpdate
from gostly.schemas.whatsapp import InboundMessage

__all__ = ["InboundMessage", "PropertyCreate", "PropertyUpdate", "PropertyResponse"]
