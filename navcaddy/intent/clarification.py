"""
Clarification responses for inputs that cannot be routed.
"""

import re
from typing import List, Optional

from .fallback import CATALOG, DEFAULT_MAX_SUGGESTIONS, LocalIntentSuggestions
from .models import ClarificationResponse, IntentSuggestion, ParsedIntent

PARSED_INTENT_FLOOR = 0.30

OFFLINE_MESSAGE = "I'm offline and need a bit more clarity. Did you mean:"
VAGUE_MESSAGE = "I'm not quite sure what you need. Did you mean:"
FEEL_MESSAGE = "I'm not quite sure what you're referring to. Are you looking to:"
PROBLEM_MESSAGE = "Could you clarify what's off? Are you looking to:"
HELP_MESSAGE = "I can help with that. What would you like to do:"
DEFAULT_MESSAGE = "I'm not quite sure what you're asking. Did you want to:"


def _has_word(text: str, *words: str) -> bool:
    return any(re.search(rf"\b{re.escape(w)}\b", text) for w in words)


def clarification_message(text: str, offline: bool = False) -> str:
    lowered = (text or "").lower()
    if offline:
        return OFFLINE_MESSAGE
    if len(lowered.split()) <= 3:
        return VAGUE_MESSAGE
    if _has_word(lowered, "feel", "feels"):
        return FEEL_MESSAGE
    if _has_word(lowered, "off", "wrong", "problem"):
        return PROBLEM_MESSAGE
    if _has_word(lowered, "help", "what", "how"):
        return HELP_MESSAGE
    return DEFAULT_MESSAGE


class ClarificationHandler:
    """Builds a ClarificationResponse from the input and any low-confidence parse."""

    def __init__(
        self,
        suggestions: Optional[LocalIntentSuggestions] = None,
        max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
    ):
        self.local = suggestions or LocalIntentSuggestions()
        self.max_suggestions = max_suggestions

    def clarify(
        self,
        text: str,
        parsed_intent: Optional[ParsedIntent] = None,
        is_offline: bool = False,
        degraded: bool = False,
    ) -> ClarificationResponse:
        ordered: List[IntentSuggestion] = []

        if parsed_intent is not None and parsed_intent.confidence >= PARSED_INTENT_FLOOR:
            candidate = CATALOG.get(parsed_intent.intent_type)
            if candidate is not None and (not is_offline or candidate.is_offline_available):
                ordered.append(candidate)

        for suggestion in self.local.suggestions(text, is_offline, self.max_suggestions):
            if len(ordered) >= self.max_suggestions:
                break
            if suggestion not in ordered:
                ordered.append(suggestion)

        return ClarificationResponse(
            message=clarification_message(text, offline=degraded and is_offline),
            suggestions=tuple(ordered[:self.max_suggestions]),
            original_input=text,
            degraded=degraded,
        )
