"""
Routing orchestrator.

Turns a Route or Confirm classification into a RoutingResult:
    - non-navigational intents (pattern queries, help) answer directly
    - navigational intents pass every prerequisite their intent requires,
      or come back as PrerequisiteMissing listing exactly the unmet ones
    - Confirm passes through as ConfirmationRequired

Clarify is not routable; callers present it before reaching the orchestrator.
"""

import logging
from typing import List, Optional

from navcaddy.intent.models import ClassificationResult, Clarify, Confirm, IntentType, ParsedIntent, Route, RoutingTarget
from navcaddy.intent.registry import get_schema
from navcaddy.memory.miss_patterns import MissPatternMemory
from navcaddy.memory.models import DecayedMissPattern
from navcaddy.memory.recorder import club_id_for
from navcaddy.shared.errors import ValidationError
from .models import ConfirmationRequired, Navigate, NoNavigation, PrerequisiteMissing, RoutingResult
from .prerequisites import PrerequisiteChecker, check_all, prerequisite_message, required_for

logger = logging.getLogger(__name__)

HELP_RESPONSE = (
    "I'm Bones, your digital caddy. Ask me about club selection, check your recovery, "
    "enter scores, or get coaching tips. What can I help you with?"
)
NO_PATTERNS_RESPONSE = (
    "I don't have enough shots logged to spot a pattern yet. "
    "Log a few more shots and I'll tell you how you tend to miss."
)
DEFAULT_RESPONSE = "I understand. Let me help you with that."


def describe_pattern(pattern: DecayedMissPattern) -> str:
    direction = pattern.direction.value.lower()
    club = f" with the {pattern.club.name}" if pattern.club is not None else ""
    pct = round(pattern.confidence * 100)
    return f"Your most common miss lately is a {direction}{club} ({pct}% confidence)."


class RoutingOrchestrator:
    def __init__(self, checker: PrerequisiteChecker, pattern_memory: Optional[MissPatternMemory] = None):
        self.checker = checker
        self.pattern_memory = pattern_memory

    async def route(self, result: ClassificationResult) -> RoutingResult:
        if isinstance(result, Route):
            return await self._route(result.intent, result.target)
        if isinstance(result, Confirm):
            return ConfirmationRequired(intent=result.intent, message=result.message)
        if isinstance(result, Clarify):
            raise TypeError("Clarify results are presented to the player and cannot be routed")
        raise TypeError(f"Unknown classification result: {type(result).__name__}")

    async def _route(self, intent: ParsedIntent, target: Optional[RoutingTarget]) -> RoutingResult:
        schema = get_schema(intent.intent_type)
        if not schema.requires_navigation:
            return NoNavigation(intent=intent, response=await self._answer(intent))

        target = target or schema.default_routing_target
        if target is None:
            raise ValueError(f"{intent.intent_type.value} requires navigation but has no routing target")

        missing = await check_all(self.checker, required_for(intent.intent_type))
        if missing:
            logger.info(
                f" {intent.intent_type.value} blocked by prerequisites: "
                f"{', '.join(p.value for p in missing)}"
            )
            return PrerequisiteMissing(intent=intent, missing=tuple(missing), message=prerequisite_message(missing))

        logger.info(f" Navigating to {target.module.value}/{target.screen}")
        return Navigate(target=target, intent=intent)

    async def _answer(self, intent: ParsedIntent) -> str:
        if intent.intent_type is IntentType.PATTERN_QUERY:
            return await self._pattern_answer(intent)
        if intent.intent_type is IntentType.HELP_REQUEST:
            return HELP_RESPONSE
        return DEFAULT_RESPONSE

    async def _pattern_answer(self, intent: ParsedIntent) -> str:
        if self.pattern_memory is None:
            return NO_PATTERNS_RESPONSE

        patterns: List[DecayedMissPattern] = []
        if intent.entities.club:
            try:
                patterns = await self.pattern_memory.get_patterns(club_id=club_id_for(intent.entities.club))
            except ValidationError:
                patterns = []
        if not patterns:
            patterns = await self.pattern_memory.get_patterns()

        patterns = [p for p in patterns if p.confidence > 0.0]
        if not patterns:
            return NO_PATTERNS_RESPONSE
        return describe_pattern(patterns[0])
