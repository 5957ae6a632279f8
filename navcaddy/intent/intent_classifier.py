"""
Confidence-gated intent classifier.

Composes the input normalizer, a classifier adapter and the clarification
fallback into one decision:

    confidence >= route_threshold                      -> Route(intent, registry target)
    confirm_threshold <= confidence < route_threshold  -> Confirm(intent, message)
    confidence < confirm_threshold                     -> Clarify(response)

A Route or Confirm whose intent is missing a required entity slot becomes a
Clarify that names the missing slots and suggests the parsed intent first.

Any adapter failure (ClassificationError, deadline exceeded, unexpected
exception) degrades to Clarify built from local keyword matching on the raw
input. classify() therefore always returns one of the three variants; the only
exception that escapes is task cancellation.
"""

import time
import asyncio
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from navcaddy.memory.models import SessionContext
from navcaddy.shared.errors import ClassificationError
from navcaddy.shared.structured_logger import StructuredLogger
from .clarification import ClarificationHandler
from .config import IntentConfig
from .connectivity import ConnectivityMonitor, StaticConnectivityMonitor
from .fallback import LocalIntentSuggestions
from .gemini_client import ClassifierAdapter, parse_response
from .models import ClassificationResult, Clarify, Confirm, EntityType, IntentType, ParsedIntent, Route
from .normalizer import InputNormalizer
from .registry import get_schema, missing_entities
from .states import PipelineState, PipelineTrace

logger = logging.getLogger(__name__)


def confirmation_message(intent: ParsedIntent) -> str:
    schema = get_schema(intent.intent_type)
    message = f"Did you want to {schema.display_name.lower()}?"

    details = []
    if intent.entities.club:
        details.append(f"with {intent.entities.club}")
    if intent.entities.yardage is not None:
        details.append(f"at {intent.entities.yardage} yards")
    if intent.entities.lie:
        details.append(f"from {intent.entities.lie}")
    if details:
        message += f" ({', '.join(details)})"
    return message


def missing_entities_message(intent_type: IntentType, missing: List[EntityType]) -> str:
    schema = get_schema(intent_type)
    names = ", ".join(e.name.lower() for e in missing)
    return f"To {schema.description.lower()}, I need more information about: {names}"


class IntentClassifier:
    """
    Normalize -> classify -> threshold.

    Counters for get_performance_stats() are updated per call; classify() is
    safe to run concurrently on one event loop.
    """

    def __init__(
        self,
        config: IntentConfig,
        adapter: Optional[ClassifierAdapter] = None,
        normalizer: Optional[InputNormalizer] = None,
        suggestions: Optional[LocalIntentSuggestions] = None,
        clarifier: Optional[ClarificationHandler] = None,
        connectivity: Optional[ConnectivityMonitor] = None,
        structured_logger: Optional[StructuredLogger] = None,
    ):
        self.config = config
        self.adapter = adapter
        self.normalizer = normalizer or InputNormalizer()
        self.clarifier = clarifier or ClarificationHandler(
            suggestions or LocalIntentSuggestions(), config.max_suggestions
        )
        self.connectivity = connectivity or StaticConnectivityMonitor()
        self.structured_logger = structured_logger or StructuredLogger(logger)

        # Performance tracking
        self.total_count = 0
        self.route_count = 0
        self.confirm_count = 0
        self.clarify_count = 0
        self.degraded_count = 0
        self.adapter_calls = 0
        self.total_latency_ms = 0.0

        logger.info(
            f" IntentClassifier initialized: route>={config.route_threshold}, "
            f"confirm>={config.confirm_threshold}, adapter_ready={self.adapter_ready}"
        )

    @property
    def adapter_ready(self) -> bool:
        return self.adapter is not None

    async def classify(
        self,
        text: str,
        context: Optional[SessionContext] = None,
        trace: Optional[PipelineTrace] = None,
    ) -> ClassificationResult:
        """
        Classify one input event.

        Args:
            text: Raw player input
            context: Current session, forwarded to the adapter when include_context is set
            trace: Pipeline trace to advance; a fresh one is created when omitted

        Returns:
            Route, Confirm or Clarify
        """
        session_id = context.session_id if context is not None else None
        trace = trace or PipelineTrace(session_id, self.structured_logger)
        self.total_count += 1

        trace.advance(PipelineState.NORMALIZING, "input_received")
        try:
            normalized = self.normalizer.normalize(text)
        except Exception as e:
            logger.warning(f" Normalization failed, classifying raw input: {e}", exc_info=True)
            normalized = " ".join((text or "").split())
            trace.advance(PipelineState.CLASSIFYING, "normalization_skipped")
        else:
            trace.advance(PipelineState.CLASSIFYING, "normalized")

        if self.config.log_classifications:
            logger.info(f" Classifying: '{normalized[:50]}'")

        if not normalized:
            return self._degrade(text, trace, "empty input")
        if self.adapter is None:
            return self._degrade(text, trace, "classifier not configured")

        try:
            intent = await asyncio.wait_for(
                self._call_adapter(normalized, context),
                timeout=self.config.classification_deadline,
            )
        except ClassificationError as e:
            return self._degrade(text, trace, str(e))
        except asyncio.TimeoutError:
            return self._degrade(text, trace, f"deadline of {self.config.classification_deadline:.1f}s exceeded")
        except Exception as e:
            logger.error(f" Unexpected classifier failure: {e}", exc_info=True)
            return self._degrade(text, trace, f"unexpected error: {type(e).__name__}")

        return self._decide(intent, normalized, trace)

    async def _call_adapter(self, normalized: str, context: Optional[SessionContext]) -> ParsedIntent:
        prompt_context: Optional[Dict[str, Any]] = None
        if self.config.include_context and context is not None and not context.is_empty:
            prompt_context = context.to_prompt_context()

        start_time = time.time()
        response = await self.adapter.classify(normalized, prompt_context)
        self.adapter_calls += 1
        self.total_latency_ms += response.latency_ms or (time.time() - start_time) * 1000
        return parse_response(response.raw_response)

    def _decide(self, intent: ParsedIntent, normalized: str, trace: PipelineTrace) -> ClassificationResult:
        target = get_schema(intent.intent_type).default_routing_target
        intent = intent.with_target(target)

        missing: List[EntityType] = []
        if intent.confidence >= self.config.confirm_threshold:
            missing = missing_entities(intent.intent_type, intent.entities)

        if missing:
            self.clarify_count += 1
            trace.advance(PipelineState.CLARIFYING, "missing_entities")
            response = self.clarifier.clarify(
                normalized,
                parsed_intent=intent,
                is_offline=self.connectivity.is_offline(),
            )
            result: ClassificationResult = Clarify(
                response=replace(response, message=missing_entities_message(intent.intent_type, missing))
            )
        elif intent.confidence >= self.config.route_threshold:
            self.route_count += 1
            trace.advance(PipelineState.ROUTING, "high_confidence")
            result = Route(intent=intent, target=target)
        elif intent.confidence >= self.config.confirm_threshold:
            self.confirm_count += 1
            trace.advance(PipelineState.CONFIRMING, "medium_confidence")
            result = Confirm(intent=intent, message=confirmation_message(intent))
        else:
            self.clarify_count += 1
            trace.advance(PipelineState.CLARIFYING, "low_confidence")
            result = Clarify(
                response=self.clarifier.clarify(
                    normalized,
                    parsed_intent=intent,
                    is_offline=self.connectivity.is_offline(),
                )
            )

        if self.config.log_classifications:
            logger.info(
                f" {intent.intent_type.value} (confidence={intent.confidence:.2f}) -> "
                f"{type(result).__name__.lower()}"
            )
        return result

    def _degrade(self, text: str, trace: PipelineTrace, reason: str) -> Clarify:
        offline = self.connectivity.is_offline()
        self.degraded_count += 1
        self.clarify_count += 1
        trace.advance(PipelineState.DEGRADED, "classifier_failed")
        self.structured_logger.degraded(trace.session_id, reason, offline)
        response = self.clarifier.clarify(
            (text or "").lower().strip(),
            is_offline=offline,
            degraded=True,
        )
        trace.advance(PipelineState.CLARIFYING, "fallback_suggestions")
        return Clarify(response=response)

    def get_performance_stats(self) -> Dict[str, Any]:
        """
        Classification counters since startup.

        Returns:
            Dict with per-outcome counts, degraded count and average adapter latency
        """
        avg_latency = self.total_latency_ms / self.adapter_calls if self.adapter_calls else 0.0
        return {
            "total_requests": self.total_count,
            "route_count": self.route_count,
            "confirm_count": self.confirm_count,
            "clarify_count": self.clarify_count,
            "degraded_count": self.degraded_count,
            "adapter_calls": self.adapter_calls,
            "average_adapter_latency_ms": round(avg_latency, 2),
            "adapter_ready": self.adapter_ready,
        }
