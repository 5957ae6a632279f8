"""
Per-session input pipeline.

Runs normalize -> classify -> route for one input and records the exchange
in the session's conversation history. Inputs are last-input-wins per
session: a new input cancels the one still in flight, and a result that
completes after being superseded is discarded instead of being written to
session state.

With a session manager attached, the session id must name the stored
session; any other id is rejected with ValidationError before
classification. Generation numbers come from one pipeline-wide sequence and
a session's entry is dropped once its current input finishes.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from navcaddy.intent.intent_classifier import IntentClassifier
from navcaddy.intent.models import ClassificationResult, Clarify, classification_to_dict
from navcaddy.intent.registry import get_schema
from navcaddy.intent.states import PipelineState, PipelineTrace
from navcaddy.memory.session import SessionContextManager
from navcaddy.shared.errors import ValidationError
from navcaddy.shared.structured_logger import StructuredLogger
from .models import (
    ConfirmationRequired,
    Navigate,
    NoNavigation,
    PrerequisiteMissing,
    RoutingResult,
    routing_to_dict,
)
from .orchestrator import RoutingOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"

_TERMINAL_STATES = {
    Navigate: PipelineState.NAVIGATE,
    NoNavigation: PipelineState.NO_NAVIGATION,
    PrerequisiteMissing: PipelineState.PREREQUISITE_MISSING,
}


@dataclass(frozen=True)
class PipelineOutcome:
    session_id: str
    generation: int
    classification: ClassificationResult
    routing: Optional[RoutingResult] = None

    @property
    def reply(self) -> str:
        return assistant_reply(self.classification, self.routing)

    def to_dict(self) -> Dict[str, Any]:
        data = classification_to_dict(self.classification)
        data["session_id"] = self.session_id
        data["generation"] = self.generation
        data["reply"] = self.reply
        data["routing"] = routing_to_dict(self.routing) if self.routing is not None else None
        return data


@dataclass(frozen=True)
class Superseded:
    """A newer input for the same session replaced this one before it finished."""
    session_id: str
    generation: int

    def to_dict(self) -> Dict[str, Any]:
        return {"outcome": "superseded", "session_id": self.session_id, "generation": self.generation}


def assistant_reply(classification: ClassificationResult, routing: Optional[RoutingResult]) -> str:
    if isinstance(classification, Clarify):
        return classification.response.message
    if isinstance(routing, Navigate):
        return f"Opening {get_schema(routing.intent.intent_type).display_name}."
    if isinstance(routing, NoNavigation):
        return routing.response
    if isinstance(routing, (PrerequisiteMissing, ConfirmationRequired)):
        return routing.message
    raise TypeError(f"Unknown routing result: {type(routing).__name__}")


class InputPipeline:
    def __init__(
        self,
        classifier: IntentClassifier,
        orchestrator: RoutingOrchestrator,
        session_manager: Optional[SessionContextManager] = None,
        structured_logger: Optional[StructuredLogger] = None,
    ):
        self.classifier = classifier
        self.orchestrator = orchestrator
        self.session_manager = session_manager
        self.structured_logger = structured_logger or StructuredLogger(logger)
        self._sequence = itertools.count(1)
        self._generations: Dict[str, int] = {}
        self._in_flight: Dict[str, asyncio.Task] = {}

    def in_flight(self, session_id: str = DEFAULT_SESSION_ID) -> bool:
        task = self._in_flight.get(session_id)
        return task is not None and not task.done()

    def _is_current(self, session_id: str, generation: int) -> bool:
        return self._generations.get(session_id) == generation

    async def handle(self, text: str, session_id: str = DEFAULT_SESSION_ID) -> Union[PipelineOutcome, Superseded]:
        """
        Process one input. Returns Superseded if a newer input for the same
        session arrives before this one completes.
        """
        generation = next(self._sequence)
        self._generations[session_id] = generation

        previous = self._in_flight.get(session_id)
        if previous is not None and not previous.done():
            previous.cancel()

        task = asyncio.ensure_future(self._run(text, session_id, generation))
        self._in_flight[session_id] = task
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and not self._is_current(session_id, generation):
                self.structured_logger.superseded(session_id, generation)
                return Superseded(session_id=session_id, generation=generation)
            raise
        finally:
            if self._in_flight.get(session_id) is task:
                del self._in_flight[session_id]
            if self._is_current(session_id, generation):
                del self._generations[session_id]

    async def _run(self, text: str, session_id: str, generation: int) -> Union[PipelineOutcome, Superseded]:
        trace = PipelineTrace(session_id, self.structured_logger)
        try:
            context = await self.session_manager.current() if self.session_manager is not None else None
            if context is not None and context.session_id != session_id:
                raise ValidationError(f"unknown session '{session_id}', the active session is '{context.session_id}'")
            classification = await self.classifier.classify(text, context, trace)

            routing: Optional[RoutingResult] = None
            if not isinstance(classification, Clarify):
                routing = await self.orchestrator.route(classification)
        except asyncio.CancelledError:
            trace.abandon("superseded")
            raise

        if not self._is_current(session_id, generation):
            trace.abandon("stale_result")
            self.structured_logger.superseded(session_id, generation)
            return Superseded(session_id=session_id, generation=generation)

        terminal = _TERMINAL_STATES.get(type(routing))
        if terminal is not None:
            trace.advance(terminal, type(routing).__name__)
        trace.advance(PipelineState.IDLE, "completed")

        outcome = PipelineOutcome(
            session_id=session_id,
            generation=generation,
            classification=classification,
            routing=routing,
        )
        if self.session_manager is not None:
            await asyncio.shield(self.session_manager.add_exchange(text, outcome.reply))
        return outcome
