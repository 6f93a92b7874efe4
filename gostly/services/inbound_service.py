"""Inbound guest message pipeline.

parse -> resolve property -> quota -> generate reply -> escalation -> handoff -> log.
Each stage advances a RequestTrace, so the quota is always taken before the
completion API is called. Every branch ends with a guest-facing reply.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gostly.config import PipelineConfig
from gostly.logging_config import LoggerAdapter, get_logger
from gostly.schemas.whatsapp import InboundMessage
from gostly.services import phrases
from gostly.services.escalation_service import EscalationPolicy, KeywordEscalationPolicy
from gostly.services.handoff_service import HandoffNotice, create_handoff
from gostly.services.language_service import detect_language, resolve_language
from gostly.services.llm import LLMProvider
from gostly.services.message_log_service import save_message_log
from gostly.services.property_service import get_property_by_code, parse_guest_message
from gostly.services.reply_service import generate_reply
from gostly.services.request_state import RequestState, RequestTrace
from gostly.services.usage_service import (
    REASON_LIMIT_REACHED,
    REASON_NO_PLAN,
    REASON_UNAVAILABLE,
    UsageCheck,
    check_and_increment_usage,
)

logger = get_logger("inbound_service")

REJECT_MISSING_CODE = "missing_code"
REJECT_UNKNOWN_CODE = "unknown_code"

_QUOTA_REPLIES = {
    REASON_NO_PLAN: phrases.NO_PLAN_REPLY,
    REASON_LIMIT_REACHED: phrases.LIMIT_REACHED_REPLY,
}


@dataclass
class InboundResult:
    reply: str
    state: RequestState
    language: str = phrases.DEFAULT_LANGUAGE
    rejection: Optional[str] = None
    property_id: Optional[UUID] = None
    usage: Optional[UsageCheck] = None
    escalated: bool = False
    trigger: Optional[str] = None
    technical_failure: bool = False
    notice: Optional[HandoffNotice] = None
    logged: bool = False


class InboundPipeline:
    def __init__(
        self,
        config: PipelineConfig,
        llm_provider: Optional[LLMProvider],
        escalation_policy: Optional[EscalationPolicy] = None,
    ):
        self.config = config
        self.llm_provider = llm_provider
        self.escalation_policy = escalation_policy or KeywordEscalationPolicy()

    def _reject(self, trace: RequestTrace, reply: str, reason: str, language: str, **extra) -> InboundResult:
        trace.reject()
        return InboundResult(reply=reply, state=trace.state, language=language, rejection=reason, **extra)

    def process(self, db: Session, message: InboundMessage) -> InboundResult:
        trace = RequestTrace()
        log = LoggerAdapter.for_message(logger, message.from_number)

        # 1. Parse "CODE: question"
        parsed = parse_guest_message(message.body)
        if parsed is None:
            language = detect_language(message.body)
            log.info("Message without property code")
            return self._reject(
                trace, phrases.phrase(phrases.MISSING_CODE_REPLY, language), REJECT_MISSING_CODE, language
            )
        trace.advance(RequestState.PARSED)
        log = log.bind(property_code=parsed.code)

        # 2. Resolve property
        prop = get_property_by_code(db, parsed.code)
        if prop is None:
            language = detect_language(parsed.text)
            log.info("Unknown property code")
            reply = phrases.phrase(phrases.UNKNOWN_CODE_REPLY, language, code=parsed.code)
            return self._reject(trace, reply, REJECT_UNKNOWN_CODE, language)
        trace.advance(RequestState.TENANT_RESOLVED)

        language = resolve_language(parsed.text, prop.languages)

        # 3. Quota, before any model call
        try:
            usage = check_and_increment_usage(db, prop.owner_id, increment=self.config.usage_increment)
        except Exception as e:
            log.error(f"Usage gate raised: {e}", exc_info=True)
            usage = UsageCheck(allowed=False, used=0, limit=0, reason=REASON_UNAVAILABLE)

        if not usage.allowed:
            table = _QUOTA_REPLIES.get(usage.reason, phrases.UNAVAILABLE_REPLY)
            log.info(
                "Message refused by usage gate",
                context={"reason": usage.reason, "used": usage.used, "limit": usage.limit},
            )
            return self._reject(
                trace,
                phrases.phrase(table, language),
                usage.reason or REASON_UNAVAILABLE,
                language,
                property_id=prop.id,
                usage=usage,
            )
        trace.advance(RequestState.QUOTA_CHECKED)

        # 4. Grounded reply
        generated = generate_reply(
            self.llm_provider,
            self.config,
            property_name=prop.name,
            knowledge_text=prop.knowledge_text,
            guest_text=parsed.text,
            language=language,
        )
        trace.advance(RequestState.REPLY_GENERATED)

        # 5. Escalation; the technical fallback text is never matched as a fallback reply,
        # but an explicit request for the host still counts during an outage.
        reply_for_policy = "" if generated.technical_failure else generated.text
        trigger = self.escalation_policy.evaluate(parsed.text, reply_for_policy)
        trace.advance(RequestState.ESCALATION_EVALUATED)

        reply = generated.text
        notice = None
        if trigger is not None:
            reply = phrases.phrase(phrases.FORWARDED_REPLY, language)
            notice = HandoffNotice(
                handoff_email=prop.handoff_email,
                property_name=prop.name,
                property_code=prop.code,
                from_number=message.from_number,
                guest_message=parsed.text,
                trigger=trigger.value,
            )
            try:
                create_handoff(db, prop, message.from_number, parsed.text, trigger.value)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                log.error(f"Failed to record handoff: {e}")
            log.info("Escalated to host", context={"trigger": trigger.value})
            trace.advance(RequestState.NOTIFIED)

        # 6. Audit log with the reply the guest actually gets
        entry = save_message_log(
            db,
            property_id=prop.id,
            from_number=message.from_number,
            to_number=message.to_number,
            guest_message=parsed.text,
            bot_reply=reply,
        )
        trace.advance(RequestState.LOGGED)
        trace.advance(RequestState.RESPONDED)

        if self.config.debug:
            log.debug("Pipeline trace", context={"history": [state.value for state in trace.history]})

        return InboundResult(
            reply=reply,
            state=trace.state,
            language=language,
            property_id=prop.id,
            usage=usage,
            escalated=trigger is not None,
            trigger=trigger.value if trigger else None,
            technical_failure=generated.technical_failure,
            notice=notice,
            logged=entry is not None,
        )
