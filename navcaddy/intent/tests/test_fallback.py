"""
Tests for local keyword suggestions and clarification responses.
"""

import pytest

from navcaddy.intent.clarification import (
    DEFAULT_MESSAGE,
    FEEL_MESSAGE,
    HELP_MESSAGE,
    OFFLINE_MESSAGE,
    PROBLEM_MESSAGE,
    VAGUE_MESSAGE,
    ClarificationHandler,
    clarification_message,
)
from navcaddy.intent.fallback import CATALOG, LocalIntentSuggestions
from navcaddy.intent.models import IntentType, Module, ParsedIntent


@pytest.fixture
def local():
    return LocalIntentSuggestions()


# ============================================================================
# LocalIntentSuggestions
# ============================================================================

class TestLocalIntentSuggestions:

    def test_keyword_match_comes_first(self, local):
        suggestions = local.suggestions("my driver feels off")

        assert suggestions[0].intent_type is IntentType.CLUB_ADJUSTMENT
        assert len(suggestions) == 3

    def test_plural_keywords_match(self, local):
        assert IntentType.PATTERN_QUERY in local.matching_intents("all my slices lately")

    def test_no_duplicates(self, local):
        suggestions = local.suggestions("club distance and yardage for my iron")
        types = [s.intent_type for s in suggestions]

        assert types.count(IntentType.CLUB_ADJUSTMENT) == 1
        assert len(types) == len(set(types))

    def test_offline_filters_network_intents(self, local):
        suggestions = local.suggestions("what's the weather and wind", is_offline=True)

        assert suggestions
        assert all(s.is_offline_available for s in suggestions)
        assert IntentType.WEATHER_CHECK not in [s.intent_type for s in suggestions]

    def test_empty_input_falls_back_to_common_intents(self, local):
        assert [s.intent_type for s in local.suggestions("")] == [
            IntentType.SHOT_RECOMMENDATION,
            IntentType.SCORE_ENTRY,
            IntentType.CLUB_ADJUSTMENT,
        ]
        assert [s.intent_type for s in local.suggestions("", is_offline=True)] == [
            IntentType.SCORE_ENTRY,
            IntentType.CLUB_ADJUSTMENT,
            IntentType.STATS_LOOKUP,
        ]

    @pytest.mark.parametrize("limit", [0, 1, 2, 5])
    def test_respects_max_suggestions(self, local, limit):
        assert len(local.suggestions("score birdie stats weather drill", max_suggestions=limit)) <= limit

    def test_deterministic(self, local):
        text = "practice drill for my hook"
        assert local.suggestions(text) == local.suggestions(text)

    def test_catalog_covers_every_intent(self):
        assert set(CATALOG) == set(IntentType)
        assert CATALOG[IntentType.DRILL_REQUEST].module is Module.COACH


# ============================================================================
# Clarification
# ============================================================================

@pytest.mark.parametrize("text, expected", [
    ("hmm", VAGUE_MESSAGE),
    ("that one there", VAGUE_MESSAGE),
    ("my driver feels weird today", FEEL_MESSAGE),
    ("something is wrong with my swing", PROBLEM_MESSAGE),
    ("what should I do here", HELP_MESSAGE),
    ("tell me about the back nine please", DEFAULT_MESSAGE),
])
def test_clarification_message(text, expected):
    assert clarification_message(text) == expected


def test_offline_message_overrides_everything():
    assert clarification_message("my driver feels weird today", offline=True) == OFFLINE_MESSAGE


class TestClarificationHandler:

    @pytest.fixture
    def handler(self):
        return ClarificationHandler(max_suggestions=3)

    def test_parsed_intent_leads_when_plausible(self, handler):
        intent = ParsedIntent(intent_type=IntentType.WEATHER_CHECK, confidence=0.4)

        response = handler.clarify("is it breezy out there today", parsed_intent=intent)

        assert response.suggestions[0].intent_type is IntentType.WEATHER_CHECK
        assert len(response.suggestions) <= 3
        assert response.original_input == "is it breezy out there today"
        assert response.degraded is False

    def test_implausible_parse_is_ignored(self, handler):
        intent = ParsedIntent(intent_type=IntentType.FEEDBACK, confidence=0.2)

        response = handler.clarify("hmm", parsed_intent=intent)

        assert IntentType.FEEDBACK not in [s.intent_type for s in response.suggestions]

    def test_offline_drops_network_parse(self, handler):
        intent = ParsedIntent(intent_type=IntentType.WEATHER_CHECK, confidence=0.45)

        response = handler.clarify("is it windy", parsed_intent=intent, is_offline=True)

        assert all(s.is_offline_available for s in response.suggestions)

    def test_offline_message_only_when_degraded(self, handler):
        assert handler.clarify("hmm", is_offline=True).message == VAGUE_MESSAGE

        degraded = handler.clarify("hmm", is_offline=True, degraded=True)
        assert degraded.message == OFFLINE_MESSAGE
        assert degraded.degraded is True

    def test_suggestions_never_exceed_limit(self):
        handler = ClarificationHandler(max_suggestions=2)
        intent = ParsedIntent(intent_type=IntentType.DRILL_REQUEST, confidence=0.35)

        response = handler.clarify("score stats weather course", parsed_intent=intent)

        assert len(response.suggestions) == 2
        assert response.suggestions[0].intent_type is IntentType.DRILL_REQUEST
