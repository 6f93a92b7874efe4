"""Grounded reply generation for guest questions."""

from dataclasses import dataclass
from typing import Optional

from gostly.config import PipelineConfig
from gostly.logging_config import get_logger
from gostly.services.llm import LLMProvider
from gostly.services.phrases import (
    SUPPORTED_LANGUAGES,
    TECHNICAL_DIFFICULTY_REPLY,
    UNKNOWN_FACT_REPLY,
    phrase,
)

logger = get_logger("reply_service")

LANGUAGE_NAMES = {"en": "English", "hr": "Croatian", "de": "German"}


@dataclass
class GeneratedReply:
    text: str
    technical_failure: bool = False


def build_system_prompt(property_name: str, knowledge_text: str, language: str) -> str:
    fallback_lines = "\n".join(
        f'- {LANGUAGE_NAMES[code]}: "{UNKNOWN_FACT_REPLY[code]}"' for code in SUPPORTED_LANGUAGES
    )
    likely = LANGUAGE_NAMES.get(language, "English")

    return f"""You are the WhatsApp assistant for the guests of "{property_name}".

Language:
- Always reply in the language the guest wrote in (most likely {likely}).

What you may answer freely:
- Greetings and small talk.
- Questions about the location, the area, travel and general tourism tips.

Property facts (check-in and check-out times, parking, Wi-Fi, house rules, amenities, prices):
- Use ONLY the property information below. Never guess or invent property facts.
- If a property fact is not in the information below, reply with exactly this sentence in the guest's language and nothing else:
{fallback_lines}

Style:
- Keep replies short and friendly.

Property information:
{knowledge_text.strip()}
"""


def generate_reply(
    provider: Optional[LLMProvider],
    config: PipelineConfig,
    *,
    property_name: str,
    knowledge_text: str,
    guest_text: str,
    language: str,
) -> GeneratedReply:
    """
    Ask the completion API for a grounded answer.

    Returns the technical-difficulty sentence (technical_failure=True) on any provider
    error or timeout, and the unknown-fact sentence when the guest question is empty
    or the model returns nothing.
    """
    if not guest_text.strip():
        # Nothing to answer after the code; hand it to the host.
        return GeneratedReply(text=phrase(UNKNOWN_FACT_REPLY, language))

    if provider is None:
        logger.error("No completion provider configured (OPENAI_API_KEY missing)")
        return GeneratedReply(text=phrase(TECHNICAL_DIFFICULTY_REPLY, language), technical_failure=True)

    messages = [
        {"role": "system", "content": build_system_prompt(property_name, knowledge_text, language)},
        {"role": "user", "content": guest_text},
    ]

    try:
        response = provider.generate(
            messages,
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout_seconds=config.llm_timeout_seconds,
        )
    except Exception as e:
        logger.error(f"Completion failed: {e}", extra={"context": {"property": property_name}})
        return GeneratedReply(text=phrase(TECHNICAL_DIFFICULTY_REPLY, language), technical_failure=True)

    text = (response.content or "").strip()
    if not text:
        logger.warning("Completion returned empty content", extra={"context": {"property": property_name}})
        return GeneratedReply(text=phrase(UNKNOWN_FACT_REPLY, language))

    return GeneratedReply(text=text)
