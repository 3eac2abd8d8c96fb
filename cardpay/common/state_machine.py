"""Per-request payment pipeline states and their allowed transitions."""

from enum import Enum


class PipelineState(str, Enum):
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    GATEWAY_DECIDED = "GATEWAY_DECIDED"
    PERSISTED = "PERSISTED"
    RESPONDED = "RESPONDED"
    REJECTED = "REJECTED"
    ERRORED = "ERRORED"


# Strictly linear: no stage re-enters an earlier one.
ALLOWED_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    PipelineState.RECEIVED: {PipelineState.VALIDATED, PipelineState.REJECTED},
    PipelineState.VALIDATED: {PipelineState.GATEWAY_DECIDED, PipelineState.ERRORED},
    PipelineState.GATEWAY_DECIDED: {PipelineState.PERSISTED, PipelineState.ERRORED},
    PipelineState.PERSISTED: {PipelineState.RESPONDED, PipelineState.ERRORED},
    PipelineState.RESPONDED: set(),
    PipelineState.REJECTED: set(),
    PipelineState.ERRORED: set(),
}


def validate_transition(current: PipelineState, new: PipelineState) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(f"Invalid transition: {current.value} -> {new.value}")
