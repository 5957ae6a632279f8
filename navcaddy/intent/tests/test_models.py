"""
Tests for intent models and the intent registry.
"""

import pytest

from navcaddy.intent.models import (
    ClarificationResponse,
    Clarify,
    Confirm,
    EntityType,
    ExtractedEntities,
    IntentType,
    Module,
    ParsedIntent,
    Route,
    classification_to_dict,
)
from navcaddy.intent.registry import (
    all_schemas,
    get_schema,
    missing_entities,
)
from navcaddy.shared.errors import ValidationError


# ============================================================================
# IntentType / ParsedIntent
# ============================================================================

def test_intent_type_parse():
    assert IntentType.parse(" club_adjustment ") is IntentType.CLUB_ADJUSTMENT
    with pytest.raises(ValueError):
        IntentType.parse("TEE_TIME_BOOKING")
    with pytest.raises(ValueError):
        IntentType.parse(None)


@pytest.mark.parametrize("raw, expected", [(1.7, 1.0), (-0.2, 0.0), (0.75, 0.75), ("0.5", 0.5)])
def test_confidence_is_clamped(raw, expected):
    assert ParsedIntent(intent_type=IntentType.HELP_REQUEST, confidence=raw).confidence == expected


@pytest.mark.parametrize("raw", [float("nan"), "high", None])
def test_invalid_confidence_rejected(raw):
    with pytest.raises(ValidationError):
        ParsedIntent(intent_type=IntentType.HELP_REQUEST, confidence=raw)


# ============================================================================
# ExtractedEntities
# ============================================================================

def test_entities_from_dict_coerces_types():
    entities = ExtractedEntities.from_dict({"club": " 7-iron ", "yardage": "150", "fatigue": "far", "lie": ""})

    assert entities.club == "7-iron"
    assert entities.yardage == 150
    assert entities.fatigue is None
    assert entities.lie is None


def test_entities_sanitized():
    entities = ExtractedEntities(yardage=-5, fatigue=15, hole_number=19).sanitized()

    assert entities.yardage is None
    assert entities.fatigue == 10
    assert entities.hole_number is None


def test_entities_has():
    entities = ExtractedEntities(club="driver")

    assert entities.has(EntityType.CLUB)
    assert not entities.has(EntityType.YARDAGE)
    assert not entities.is_empty
    assert ExtractedEntities.from_dict(None).is_empty


# ============================================================================
# Classification serialization
# ============================================================================

def test_classification_to_dict_outcomes():
    intent = ParsedIntent(intent_type=IntentType.STATS_LOOKUP, confidence=0.9)
    target = get_schema(IntentType.STATS_LOOKUP).default_routing_target

    assert classification_to_dict(Route(intent=intent, target=target))["outcome"] == "route"
    assert classification_to_dict(Confirm(intent=intent, message="Did you want to stats lookup?"))["outcome"] == "confirm"

    clarify = classification_to_dict(Clarify(response=ClarificationResponse("Did you mean:", (), "hmm")))
    assert clarify["outcome"] == "clarify"
    assert clarify["clarification"]["suggestions"] == []

    with pytest.raises(TypeError):
        classification_to_dict(intent)


# ============================================================================
# Registry
# ============================================================================

def test_every_intent_is_registered():
    assert {s.intent_type for s in all_schemas()} == set(IntentType)


def test_navigational_intents_have_targets():
    for schema in all_schemas():
        if schema.requires_navigation:
            assert schema.default_routing_target is not None, schema.intent_type
        assert len(schema.example_phrases) == 3


def test_non_navigational_intents():
    answered_in_place = {s.intent_type for s in all_schemas() if not s.requires_navigation}
    assert answered_in_place == {IntentType.PATTERN_QUERY, IntentType.HELP_REQUEST}


def test_targets_by_module():
    assert get_schema(IntentType.DRILL_REQUEST).default_routing_target.module is Module.COACH
    assert get_schema(IntentType.FEEDBACK).default_routing_target.screen == "FeedbackScreen"


def test_missing_entities():
    assert missing_entities(IntentType.CLUB_ADJUSTMENT, ExtractedEntities()) == [EntityType.CLUB]
    assert missing_entities(IntentType.CLUB_ADJUSTMENT, ExtractedEntities(club="driver")) == []
    assert missing_entities(IntentType.WEATHER_CHECK, ExtractedEntities()) == []
