"""
Tests for IntentClassifier: thresholds, degraded fallback and context.
"""

import asyncio
import time
import pytest
from unittest.mock import MagicMock

from navcaddy.intent.clarification import OFFLINE_MESSAGE
from navcaddy.intent.config import IntentConfig
from navcaddy.intent.intent_classifier import IntentClassifier, confirmation_message
from navcaddy.intent.models import Clarify, Confirm, ExtractedEntities, IntentType, ParsedIntent, Route
from navcaddy.intent.registry import get_schema
from navcaddy.intent.states import PipelineState, PipelineTrace
from navcaddy.memory.models import SessionContext
from navcaddy.shared.errors import ClassificationError, ErrorCategory
from .conftest import classifier_response


# ============================================================================
# Confidence thresholds
# ============================================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("confidence, expected", [
    (1.0, Route),
    (0.75, Route),
    (0.7499, Confirm),
    (0.50, Confirm),
    (0.4999, Clarify),
    (0.0, Clarify),
])
async def test_threshold_boundaries(classifier, adapter, confidence, expected):
    adapter.classify.return_value = classifier_response("STATS_LOOKUP", confidence)

    result = await classifier.classify("show my stats")

    assert isinstance(result, expected)


@pytest.mark.asyncio
async def test_route_carries_registry_target(classifier):
    result = await classifier.classify("gimme my 7i yardage")

    target = get_schema(IntentType.CLUB_ADJUSTMENT).default_routing_target
    assert isinstance(result, Route)
    assert result.target == target
    assert result.intent.routing_target == target
    assert result.intent.entities.club == "7-iron"


@pytest.mark.asyncio
async def test_adapter_receives_normalized_text(classifier, adapter):
    await classifier.classify("gimme my 7i yardage from one fifty")

    text = adapter.classify.call_args[0][0]
    assert text == "gimme my 7-iron yardage from 150"


@pytest.mark.asyncio
async def test_confirm_message(classifier, adapter):
    adapter.classify.return_value = classifier_response("CLUB_ADJUSTMENT", 0.6, club="7-iron", yardage=150)

    result = await classifier.classify("7 iron 150")

    assert isinstance(result, Confirm)
    assert result.message == "Did you want to club adjustment? (with 7-iron, at 150 yards)"


def test_confirmation_message_without_entities():
    intent = ParsedIntent(intent_type=IntentType.ROUND_START, confidence=0.6, entities=ExtractedEntities())
    assert confirmation_message(intent) == "Did you want to round start?"


@pytest.mark.asyncio
@pytest.mark.parametrize("confidence", [0.92, 0.6])
async def test_missing_required_entity_clarifies(classifier, adapter, confidence):
    adapter.classify.return_value = classifier_response("CLUB_ADJUSTMENT", confidence)

    result = await classifier.classify("this club feels long today")

    assert isinstance(result, Clarify)
    assert result.response.degraded is False
    assert result.response.message == (
        "To adjust club distances or yardage expectations, I need more information about: club"
    )
    assert result.response.suggestions[0].intent_type is IntentType.CLUB_ADJUSTMENT
    assert classifier.get_performance_stats()["clarify_count"] == 1


@pytest.mark.asyncio
async def test_missing_entity_ignored_below_confirm_threshold(classifier, adapter):
    adapter.classify.return_value = classifier_response("CLUB_ADJUSTMENT", 0.35)

    result = await classifier.classify("this club feels long today")

    assert isinstance(result, Clarify)
    assert "need more information" not in result.response.message


@pytest.mark.asyncio
async def test_low_confidence_clarifies_with_parsed_intent_first(classifier, adapter):
    adapter.classify.return_value = classifier_response("DRILL_REQUEST", 0.35)

    result = await classifier.classify("something to work on this week maybe")

    assert isinstance(result, Clarify)
    assert result.response.degraded is False
    assert result.response.suggestions[0].intent_type is IntentType.DRILL_REQUEST
    assert len(result.response.suggestions) <= 3


# ============================================================================
# Degraded fallback
# ============================================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("failure", [
    ClassificationError("Gemini API error: 500", ErrorCategory.NETWORK),
    RuntimeError("socket closed"),
])
async def test_adapter_failure_degrades(classifier, adapter, failure):
    adapter.classify.side_effect = failure

    result = await classifier.classify("my driver keeps going right")

    assert isinstance(result, Clarify)
    assert result.response.degraded is True
    assert result.response.suggestions[0].intent_type is IntentType.CLUB_ADJUSTMENT
    assert classifier.get_performance_stats()["degraded_count"] == 1


@pytest.mark.asyncio
async def test_malformed_payload_degrades(classifier, adapter):
    adapter.classify.return_value = classifier_response("NOT_AN_INTENT", 0.99)

    result = await classifier.classify("whatever")

    assert isinstance(result, Clarify)
    assert result.response.degraded is True


@pytest.mark.asyncio
async def test_deadline_bounds_classification(adapter, connectivity):
    config = IntentConfig(gemini_api_key="test-key", classifier_timeout=0.05, max_retries=0, log_classifications=False)
    classifier = IntentClassifier(config, adapter=adapter, connectivity=connectivity)

    async def hang(text, context=None):
        await asyncio.sleep(5)

    adapter.classify.side_effect = hang

    start = time.monotonic()
    result = await classifier.classify("what's the play here")

    assert time.monotonic() - start < 1.0
    assert isinstance(result, Clarify)
    assert result.response.degraded is True


@pytest.mark.asyncio
async def test_offline_failure_uses_offline_suggestions(classifier, adapter, connectivity):
    connectivity.set_offline(True)
    adapter.classify.side_effect = ClassificationError("offline", ErrorCategory.NETWORK)

    result = await classifier.classify("what's the weather doing")

    assert result.response.message == OFFLINE_MESSAGE
    assert 0 < len(result.response.suggestions) <= 3
    assert all(s.is_offline_available for s in result.response.suggestions)


@pytest.mark.asyncio
async def test_missing_adapter_degrades_without_call(intent_config):
    classifier = IntentClassifier(intent_config, adapter=None)

    result = await classifier.classify("show my stats")

    assert isinstance(result, Clarify)
    assert result.response.degraded is True
    assert classifier.adapter_ready is False


@pytest.mark.asyncio
@pytest.mark.parametrize("raw, expected", [
    ("flat ſtick", "putter"),
    ("grab my ſtick", "grab my club"),
    ("\u212aeep it low with the 7i", "\u212aeep it low with the 7-iron"),
])
async def test_case_folded_input_reaches_adapter(classifier, adapter, raw, expected):
    result = await classifier.classify(raw)

    assert isinstance(result, Route)
    assert adapter.classify.call_args[0][0] == expected


@pytest.mark.asyncio
async def test_normalizer_failure_classifies_raw_text(intent_config, adapter, connectivity):
    normalizer = MagicMock()
    normalizer.normalize.side_effect = KeyError("stick")
    classifier = IntentClassifier(intent_config, adapter=adapter, connectivity=connectivity, normalizer=normalizer)

    result = await classifier.classify("  grab   my stick ")

    assert isinstance(result, Route)
    assert adapter.classify.call_args[0][0] == "grab my stick"


@pytest.mark.asyncio
async def test_blank_input_never_reaches_adapter(classifier, adapter):
    result = await classifier.classify("   ")

    assert isinstance(result, Clarify)
    adapter.classify.assert_not_called()


@pytest.mark.asyncio
async def test_cancellation_propagates(classifier, adapter):
    started = asyncio.Event()

    async def hang(text, context=None):
        started.set()
        await asyncio.sleep(5)

    adapter.classify.side_effect = hang
    task = asyncio.ensure_future(classifier.classify("what club"))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


# ============================================================================
# Context and tracing
# ============================================================================

@pytest.mark.asyncio
async def test_session_context_forwarded(classifier, adapter):
    context = SessionContext(session_id="default", current_hole=7)

    await classifier.classify("what's the play", context)

    assert adapter.classify.call_args[0][1] == {"current_hole": 7}


@pytest.mark.asyncio
async def test_empty_context_not_forwarded(classifier, adapter):
    await classifier.classify("what's the play", SessionContext.empty())
    assert adapter.classify.call_args[0][1] is None


@pytest.mark.asyncio
async def test_context_disabled(adapter):
    config = IntentConfig(gemini_api_key="test-key", include_context=False, log_classifications=False)
    classifier = IntentClassifier(config, adapter=adapter)

    await classifier.classify("what's the play", SessionContext(session_id="default", current_hole=3))

    assert adapter.classify.call_args[0][1] is None


@pytest.mark.asyncio
async def test_trace_paths(classifier, adapter):
    trace = PipelineTrace("s1")
    await classifier.classify("gimme my 7i yardage", trace=trace)
    assert trace.path == [PipelineState.NORMALIZING, PipelineState.CLASSIFYING, PipelineState.ROUTING]

    adapter.classify.side_effect = ClassificationError("down", ErrorCategory.SERVICE_UNAVAILABLE)
    trace = PipelineTrace("s1")
    await classifier.classify("gimme my 7i yardage", trace=trace)
    assert trace.path == [
        PipelineState.NORMALIZING,
        PipelineState.CLASSIFYING,
        PipelineState.DEGRADED,
        PipelineState.CLARIFYING,
    ]


@pytest.mark.asyncio
async def test_performance_stats(classifier, adapter):
    await classifier.classify("gimme my 7i yardage")
    adapter.classify.return_value = classifier_response("CLUB_ADJUSTMENT", 0.6, club="7-iron")
    await classifier.classify("7 iron maybe")

    stats = classifier.get_performance_stats()

    assert stats["total_requests"] == 2
    assert stats["route_count"] == 1
    assert stats["confirm_count"] == 1
    assert stats["adapter_calls"] == 2
    assert stats["average_adapter_latency_ms"] == 25.0
    assert stats["adapter_ready"] is True
