"""
Local intent suggestions.

Keyword matching over a static table, usable with no network. Results are
deterministic: keyword matches in table order, then the common intents, each
intent at most once, filtered to offline-capable entries when offline.
"""

import re
from typing import Dict, List, Pattern, Tuple

from .models import IntentSuggestion, IntentType, Module

DEFAULT_MAX_SUGGESTIONS = 3


def _suggestion(intent_type, label, description, module, offline) -> IntentSuggestion:
    return IntentSuggestion(
        intent_type=intent_type,
        label=label,
        description=description,
        module=module,
        is_offline_available=offline,
    )


CATALOG: Dict[IntentType, IntentSuggestion] = {
    s.intent_type: s for s in (
        _suggestion(IntentType.CLUB_ADJUSTMENT, "Adjust Club", "Update club distances or selection", Module.CADDY, True),
        _suggestion(IntentType.RECOVERY_CHECK, "Check Recovery", "View your current recovery status", Module.RECOVERY, False),
        _suggestion(IntentType.SHOT_RECOMMENDATION, "Get Shot Advice", "Recommend club and strategy for current shot", Module.CADDY, False),
        _suggestion(IntentType.SCORE_ENTRY, "Enter Score", "Record your score for a hole", Module.CADDY, True),
        _suggestion(IntentType.PATTERN_QUERY, "View Patterns", "See your miss patterns and tendencies", Module.COACH, True),
        _suggestion(IntentType.DRILL_REQUEST, "Get Drill", "Practice drills and exercises", Module.COACH, False),
        _suggestion(IntentType.WEATHER_CHECK, "Check Weather", "View current weather conditions", Module.CADDY, False),
        _suggestion(IntentType.STATS_LOOKUP, "View Stats", "Check your golf statistics", Module.CADDY, True),
        _suggestion(IntentType.ROUND_START, "Start Round", "Begin a new golf round", Module.CADDY, True),
        _suggestion(IntentType.ROUND_END, "End Round", "Complete your current round", Module.CADDY, True),
        _suggestion(IntentType.EQUIPMENT_INFO, "Equipment Info", "View your bag and club details", Module.SETTINGS, True),
        _suggestion(IntentType.COURSE_INFO, "Course Info", "Get course details and layout", Module.CADDY, False),
        _suggestion(IntentType.SETTINGS_CHANGE, "Settings", "Change app preferences", Module.SETTINGS, True),
        _suggestion(IntentType.HELP_REQUEST, "Help", "Get help using the app", Module.SETTINGS, True),
        _suggestion(IntentType.FEEDBACK, "Feedback", "Provide app feedback", Module.SETTINGS, False),
        _suggestion(IntentType.BAILOUT_QUERY, "Find Bailout", "See the safe miss area for this shot", Module.CADDY, False),
        _suggestion(IntentType.READINESS_CHECK, "Check Readiness", "See how readiness shapes today's strategy", Module.CADDY, False),
    )
}

KEYWORD_MAP: Tuple[Tuple[Tuple[str, ...], IntentType], ...] = (
    (("club", "distance", "yardage", "adjust", "change club", "iron", "driver", "wedge"), IntentType.CLUB_ADJUSTMENT),
    (("recovery", "sore", "tired", "body", "health", "rest"), IntentType.RECOVERY_CHECK),
    (("shot", "recommend", "advice", "what club", "which club", "club selection", "strategy", "play"), IntentType.SHOT_RECOMMENDATION),
    (("score", "enter", "record", "input score", "hole score", "birdie", "bogey", "par"), IntentType.SCORE_ENTRY),
    (("pattern", "miss", "tendency", "slice", "hook", "push", "pull", "fade", "draw"), IntentType.PATTERN_QUERY),
    (("drill", "practice", "exercise", "training", "workout", "improve"), IntentType.DRILL_REQUEST),
    (("weather", "wind", "rain", "temperature", "forecast", "conditions"), IntentType.WEATHER_CHECK),
    (("stats", "statistics", "performance", "handicap", "average", "summary"), IntentType.STATS_LOOKUP),
    (("start round", "new round", "begin", "tee off", "first hole"), IntentType.ROUND_START),
    (("end round", "finish", "complete", "done", "last hole"), IntentType.ROUND_END),
    (("equipment", "bag", "clubs in bag", "what's in my bag"), IntentType.EQUIPMENT_INFO),
    (("course", "hole", "layout", "map"), IntentType.COURSE_INFO),
    (("settings", "preferences", "options", "configure", "setup"), IntentType.SETTINGS_CHANGE),
    (("help", "how to", "instructions", "guide", "tutorial"), IntentType.HELP_REQUEST),
    (("feedback", "report", "bug", "suggestion", "feature request"), IntentType.FEEDBACK),
    (("bailout", "bail out", "safe play", "safe miss"), IntentType.BAILOUT_QUERY),
    (("readiness", "ready"), IntentType.READINESS_CHECK),
)

COMMON_INTENTS: Tuple[IntentType, ...] = (
    IntentType.SHOT_RECOMMENDATION,
    IntentType.SCORE_ENTRY,
    IntentType.CLUB_ADJUSTMENT,
    IntentType.STATS_LOOKUP,
    IntentType.RECOVERY_CHECK,
)


def _compile_keywords() -> List[Tuple[Pattern, IntentType]]:
    compiled = []
    for keywords, intent_type in KEYWORD_MAP:
        alternation = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
        compiled.append((re.compile(rf"\b(?:{alternation})s?\b"), intent_type))
    return compiled


class LocalIntentSuggestions:
    """Offline keyword -> intent suggestions."""

    def __init__(self):
        self._keywords = _compile_keywords()

    def matching_intents(self, text: str) -> List[IntentType]:
        """Intent types whose keywords occur in `text`, in table order."""
        lowered = (text or "").lower().strip()
        if not lowered:
            return []
        return [intent_type for pattern, intent_type in self._keywords if pattern.search(lowered)]

    def common_intents(self, is_offline: bool = False) -> List[IntentSuggestion]:
        return [CATALOG[i] for i in COMMON_INTENTS if not is_offline or CATALOG[i].is_offline_available]

    def suggestions(
        self,
        text: str,
        is_offline: bool = False,
        max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
    ) -> List[IntentSuggestion]:
        """
        Keyword matches first, padded with common intents up to max_suggestions.

        Args:
            text: Raw or normalized user input
            is_offline: Drop suggestions that need the network
            max_suggestions: Upper bound on the returned list

        Returns:
            Ordered, de-duplicated suggestions; never longer than max_suggestions
        """
        if max_suggestions <= 0:
            return []

        candidates = [CATALOG[i] for i in self.matching_intents(text)] + self.common_intents(is_offline)

        results: List[IntentSuggestion] = []
        seen = set()
        for suggestion in candidates:
            if suggestion.intent_type in seen:
                continue
            if is_offline and not suggestion.is_offline_available:
                continue
            seen.add(suggestion.intent_type)
            results.append(suggestion)
            if len(results) == max_suggestions:
                break
        return results
