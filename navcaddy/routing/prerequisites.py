"""
Routing prerequisites and the checkers that answer them.

A prerequisite names data that must exist before a screen is useful (a
configured bag, an active round). Checks may suspend; a check that raises is
logged and counted as unmet.
"""

import asyncio
import logging
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Protocol, Tuple

from navcaddy.intent.models import IntentType
from navcaddy.memory.session import SessionContextManager

logger = logging.getLogger(__name__)


class Prerequisite(Enum):
    RECOVERY_DATA = "RECOVERY_DATA"
    ROUND_ACTIVE = "ROUND_ACTIVE"
    BAG_CONFIGURED = "BAG_CONFIGURED"
    COURSE_SELECTED = "COURSE_SELECTED"


REQUIRED_PREREQUISITES: Dict[IntentType, Tuple[Prerequisite, ...]] = {
    IntentType.RECOVERY_CHECK: (Prerequisite.RECOVERY_DATA,),
    IntentType.SCORE_ENTRY: (Prerequisite.ROUND_ACTIVE,),
    IntentType.ROUND_END: (Prerequisite.ROUND_ACTIVE,),
    IntentType.CLUB_ADJUSTMENT: (Prerequisite.BAG_CONFIGURED,),
    IntentType.SHOT_RECOMMENDATION: (Prerequisite.BAG_CONFIGURED,),
    IntentType.COURSE_INFO: (Prerequisite.COURSE_SELECTED,),
}

PREREQUISITE_MESSAGES: Dict[Prerequisite, str] = {
    Prerequisite.RECOVERY_DATA: (
        "I don't have any recovery data yet. Log your sleep, HRV, or readiness score first, "
        "and I'll give you insights."
    ),
    Prerequisite.ROUND_ACTIVE: "You need to start a round first. Would you like to start a new round now?",
    Prerequisite.BAG_CONFIGURED: (
        "Your bag isn't configured yet. Set up your clubs and distances so I can give you "
        "better recommendations."
    ),
    Prerequisite.COURSE_SELECTED: "Which course are you playing? Select a course to get specific information.",
}


def required_for(intent_type: IntentType) -> Tuple[Prerequisite, ...]:
    return REQUIRED_PREREQUISITES.get(intent_type, ())


def prerequisite_message(missing: Iterable[Prerequisite]) -> str:
    """Message for the first unmet prerequisite, in declaration order."""
    missing = set(missing)
    for prerequisite in Prerequisite:
        if prerequisite in missing:
            return PREREQUISITE_MESSAGES[prerequisite]
    return "Some required information is missing. Please complete your profile first."


class PrerequisiteChecker(Protocol):
    async def check(self, prerequisite: Prerequisite) -> bool: ...


async def check_all(checker: PrerequisiteChecker, prerequisites: Iterable[Prerequisite]) -> List[Prerequisite]:
    """
    Run every check concurrently and return the unmet prerequisites in input order.

    A check that raises counts as unmet.
    """
    prerequisites = list(prerequisites)
    if not prerequisites:
        return []

    results = await asyncio.gather(*(checker.check(p) for p in prerequisites), return_exceptions=True)

    missing = []
    for prerequisite, result in zip(prerequisites, results):
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.warning(f"️ Prerequisite check {prerequisite.value} failed, treating as unmet: {result}")
            missing.append(prerequisite)
        elif not result:
            missing.append(prerequisite)
    return missing


class StaticPrerequisiteChecker:
    """Answers from a fixed set of satisfied prerequisites."""

    def __init__(self, satisfied: Iterable[Prerequisite] = ()):
        self.satisfied: FrozenSet[Prerequisite] = frozenset(satisfied)

    async def check(self, prerequisite: Prerequisite) -> bool:
        return prerequisite in self.satisfied


class SessionPrerequisiteChecker:
    """
    Round and course prerequisites from the live session; anything else is
    delegated to `fallback` (unmet when there is none).
    """

    def __init__(self, session_manager: SessionContextManager, fallback: Optional[PrerequisiteChecker] = None):
        self.session_manager = session_manager
        self.fallback = fallback

    async def check(self, prerequisite: Prerequisite) -> bool:
        if prerequisite is Prerequisite.ROUND_ACTIVE:
            return (await self.session_manager.current()).current_round is not None
        if prerequisite is Prerequisite.COURSE_SELECTED:
            current_round = (await self.session_manager.current()).current_round
            return current_round is not None and bool(current_round.course_name)
        if self.fallback is not None:
            return await self.fallback.check(prerequisite)
        return False
