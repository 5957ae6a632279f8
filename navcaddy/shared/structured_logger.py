"""
JSON event lines for the input pipeline.

Each event is one log record whose message is a JSON object:

    {"timestamp": ..., "event_type": ..., "message": ..., "session_id": ..., "data": {...}}

`session_id` is omitted for events outside a session; `data` is omitted when empty.
Values that json cannot encode are written with str().
"""

import json
import logging
import time
from typing import Any, Dict, Optional


class StructuredLogger:
    """Emits pipeline events through an ordinary `logging.Logger`."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def _emit(
        self,
        level: int,
        event_type: str,
        message: str,
        session_id: Optional[str],
        data: Optional[Dict[str, Any]],
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        entry: Dict[str, Any] = {"timestamp": time.time(), "event_type": event_type, "message": message}
        if session_id is not None:
            entry["session_id"] = session_id
        if data:
            entry["data"] = dict(data)
        self.logger.log(level, json.dumps(entry, default=str))

    def event(
        self,
        session_id: Optional[str],
        event_type: str,
        message: str,
        level: str = "INFO",
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._emit(logging.getLevelName(level.upper()), event_type, message, session_id, data)

    def state_transition(self, session_id: Optional[str], old_state: str, new_state: str, trigger: str) -> None:
        """One PipelineTrace step."""
        self._emit(
            logging.INFO,
            "state_transition",
            f"{old_state} -> {new_state} ({trigger})",
            session_id,
            {"old_state": old_state, "new_state": new_state, "trigger": trigger},
        )

    def degraded(self, session_id: Optional[str], reason: str, offline: bool) -> None:
        """Classification fell back to local suggestions."""
        self._emit(
            logging.WARNING,
            "classification_degraded",
            f"Classifier unavailable: {reason}",
            session_id,
            {"reason": reason, "offline": offline},
        )

    def superseded(self, session_id: Optional[str], generation: int) -> None:
        self._emit(
            logging.INFO,
            "input_superseded",
            f"Input generation {generation} abandoned",
            session_id,
            {"generation": generation},
        )
