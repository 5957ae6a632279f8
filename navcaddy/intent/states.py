"""
Per-input pipeline state tracking.

    IDLE -> NORMALIZING -> CLASSIFYING -> ROUTING -> {NAVIGATE, NO_NAVIGATION, PREREQUISITE_MISSING}
                                       -> CONFIRMING
                                       -> CLARIFYING
                                       -> DEGRADED -> CLARIFYING

Every terminal state returns to IDLE. A trace may be abandoned from any state
when a newer input for the same session supersedes it.
"""

import logging
from enum import Enum
from typing import List, Optional, Tuple

from navcaddy.shared.structured_logger import StructuredLogger

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    IDLE = "idle"
    NORMALIZING = "normalizing"
    CLASSIFYING = "classifying"
    ROUTING = "routing"
    NAVIGATE = "navigate"
    NO_NAVIGATION = "no_navigation"
    PREREQUISITE_MISSING = "prerequisite_missing"
    CONFIRMING = "confirming"
    CLARIFYING = "clarifying"
    DEGRADED = "degraded"


VALID_TRANSITIONS = {
    PipelineState.IDLE: [PipelineState.NORMALIZING],
    PipelineState.NORMALIZING: [PipelineState.CLASSIFYING],
    PipelineState.CLASSIFYING: [
        PipelineState.ROUTING,
        PipelineState.CONFIRMING,
        PipelineState.CLARIFYING,
        PipelineState.DEGRADED,
    ],
    PipelineState.DEGRADED: [PipelineState.CLARIFYING],
    PipelineState.ROUTING: [
        PipelineState.NAVIGATE,
        PipelineState.NO_NAVIGATION,
        PipelineState.PREREQUISITE_MISSING,
    ],
    PipelineState.NAVIGATE: [PipelineState.IDLE],
    PipelineState.NO_NAVIGATION: [PipelineState.IDLE],
    PipelineState.PREREQUISITE_MISSING: [PipelineState.IDLE],
    PipelineState.CONFIRMING: [PipelineState.IDLE],
    PipelineState.CLARIFYING: [PipelineState.IDLE],
}


class PipelineTrace:
    """Validated walk through PipelineState for one input event."""

    def __init__(self, session_id: Optional[str] = None, structured_logger: Optional[StructuredLogger] = None):
        self.session_id = session_id
        self.state = PipelineState.IDLE
        self.history: List[Tuple[PipelineState, str]] = []
        self.structured_logger = structured_logger or StructuredLogger(logger)

    def advance(self, new_state: PipelineState, trigger: str) -> bool:
        old_state = self.state
        if new_state not in VALID_TRANSITIONS.get(old_state, []):
            logger.error(
                f"[{self.session_id}] INVALID TRANSITION: "
                f"{old_state.value.upper()} -> {new_state.value.upper()} (trigger: {trigger})"
            )
            return False

        self.state = new_state
        self.history.append((new_state, trigger))
        self.structured_logger.state_transition(self.session_id, old_state.value, new_state.value, trigger)
        return True

    def abandon(self, trigger: str = "superseded") -> None:
        """Return to IDLE from any state."""
        if self.state is PipelineState.IDLE:
            return
        old_state = self.state
        self.state = PipelineState.IDLE
        self.history.append((PipelineState.IDLE, trigger))
        self.structured_logger.state_transition(self.session_id, old_state.value, PipelineState.IDLE.value, trigger)

    @property
    def path(self) -> List[PipelineState]:
        return [state for state, _ in self.history]
