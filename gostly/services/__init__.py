from gostly.services.escalation_service import EscalationPolicy, EscalationTrigger, KeywordEscalationPolicy
from gostly.services.inbound_service import InboundPipeline, InboundResult
from gostly.services.request_state import (
    InvalidTransitionError,
    RequestState,
    RequestTrace,
    can_transition,
    transition,
)
from gostly.services.usage_service import UsageCheck, check_and_increment_usage
