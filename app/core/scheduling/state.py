"""Orchestrator state machine."""

from enum import Enum
from typing import Set


class OrchestratorState(str, Enum):
    """States of one inbound message run."""

    IDLE = "idle"
    CLASSIFY_INTENT = "classify_intent"
    AVAILABILITY_FLOW = "availability_flow"
    BOOKING_FLOW = "booking_flow"
    REPLIED = "replied"


# Valid state transitions
VALID_TRANSITIONS: dict[OrchestratorState, Set[OrchestratorState]] = {
    OrchestratorState.IDLE: {
        OrchestratorState.CLASSIFY_INTENT,
    },
    OrchestratorState.CLASSIFY_INTENT: {
        OrchestratorState.AVAILABILITY_FLOW,
        OrchestratorState.BOOKING_FLOW,
        OrchestratorState.REPLIED,  # Classifier failed, ask for clarification
    },
    OrchestratorState.AVAILABILITY_FLOW: {
        OrchestratorState.REPLIED,
    },
    OrchestratorState.BOOKING_FLOW: {
        OrchestratorState.REPLIED,
    },
    OrchestratorState.REPLIED: set(),  # Terminal state
}


def can_transition(from_state: OrchestratorState, to_state: OrchestratorState) -> bool:
    """Check if a state transition is valid."""
    return to_state in VALID_TRANSITIONS.get(from_state, set())

