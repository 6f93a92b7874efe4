import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from gostly.services.phrases import UNKNOWN_FACT_REPLY


class EscalationTrigger(str, Enum):
    EXPLICIT_REQUEST = "explicit_request"
    FALLBACK_REPLY = "fallback_reply"


class EscalationPolicy(ABC):
    """Decides whether a guest message must be handed to the host."""

    @abstractmethod
    def evaluate(self, guest_text: str, generated_reply: str) -> Optional[EscalationTrigger]:
        """Return the trigger that fired, or None."""
        pass

    def should_escalate(self, guest_text: str, generated_reply: str) -> bool:
        return self.evaluate(guest_text, generated_reply) is not None


# Handoff words only; generic words like "person" or "phone" show up in ordinary questions.
_HUMAN_REQUEST_PATTERNS = (
    # en
    re.compile(r"\b(human|real person|host|owner|agent|call)\b"),
    # hr
    re.compile(r"\b(čovjek\w*|domaćin\w*|vlasni\w*|agent\w*|nazov\w*|nazvati)\b"),
    # de
    re.compile(r"\b(mensch\w*|gastgeber\w*|vermieter\w*|besitzer\w*|eigentümer\w*|anruf\w*)\b"),
)


def _normalize(text: str) -> str:
    text = (text or "").replace("’", "'").replace("‘", "'")
    return re.sub(r"\s+", " ", text).strip().casefold()


_FALLBACK_SENTENCES = frozenset(_normalize(sentence) for sentence in UNKNOWN_FACT_REPLY.values())


def is_human_request(guest_text: str) -> bool:
    normalized = _normalize(guest_text)
    if not normalized:
        return False
    return any(pattern.search(normalized) for pattern in _HUMAN_REQUEST_PATTERNS)


def is_fallback_reply(generated_reply: str) -> bool:
    """Exact sentence match only; a reply that merely mentions forwarding does not count."""
    return _normalize(generated_reply) in _FALLBACK_SENTENCES


class KeywordEscalationPolicy(EscalationPolicy):
    def evaluate(self, guest_text: str, generated_reply: str) -> Optional[EscalationTrigger]:
        if is_human_request(guest_text):
            return EscalationTrigger.EXPLICIT_REQUEST
        if is_fallback_reply(generated_reply):
            return EscalationTrigger.FALLBACK_REPLY
        return None
