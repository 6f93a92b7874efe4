from enum import Enum


class RequestState(str, Enum):
    RECEIVED = "received"
    PARSED = "parsed"
    TENANT_RESOLVED = "tenant_resolved"
    QUOTA_CHECKED = "quota_checked"
    REPLY_GENERATED = "reply_generated"
    ESCALATION_EVALUATED = "escalation_evaluated"
    NOTIFIED = "notified"
    LOGGED = "logged"
    REJECTED = "rejected"
    RESPONDED = "responded"


VALID_TRANSITIONS = {
    RequestState.RECEIVED: [RequestState.PARSED, RequestState.REJECTED],
    RequestState.PARSED: [RequestState.TENANT_RESOLVED, RequestState.REJECTED],
    RequestState.TENANT_RESOLVED: [RequestState.QUOTA_CHECKED, RequestState.REJECTED],
    RequestState.QUOTA_CHECKED: [RequestState.REPLY_GENERATED],
    RequestState.REPLY_GENERATED: [RequestState.ESCALATION_EVALUATED],
    RequestState.ESCALATION_EVALUATED: [RequestState.NOTIFIED, RequestState.LOGGED],
    RequestState.NOTIFIED: [RequestState.LOGGED],
    RequestState.LOGGED: [RequestState.RESPONDED],
    RequestState.REJECTED: [RequestState.RESPONDED],
    RequestState.RESPONDED: [],
}


class InvalidTransitionError(Exception):
    def __init__(self, from_state: RequestState, to_state: RequestState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")


def can_transition(from_state: RequestState, to_state: RequestState) -> bool:
    return to_state in VALID_TRANSITIONS.get(from_state, [])


def transition(from_state: RequestState, to_state: RequestState) -> RequestState:
    """Perform state transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_state, to_state):
        raise InvalidTransitionError(from_state, to_state)
    return to_state


class RequestTrace:
    """Per-request record of the stages a message went through."""

    def __init__(self) -> None:
        self.state = RequestState.RECEIVED
        self.history = [RequestState.RECEIVED]

    def advance(self, to_state: RequestState) -> RequestState:
        self.state = transition(self.state, to_state)
        self.history.append(self.state)
        return self.state

    def reject(self) -> RequestState:
        self.advance(RequestState.REJECTED)
        return self.advance(RequestState.RESPONDED)

    @property
    def is_terminal(self) -> bool:
        return self.state == RequestState.RESPONDED
