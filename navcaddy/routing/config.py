"""
Configuration for routing.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import FrozenSet

from .prerequisites import Prerequisite

logger = logging.getLogger(__name__)


def _parse_prerequisites(raw: str) -> FrozenSet[Prerequisite]:
    satisfied = set()
    for name in raw.split(","):
        name = name.strip().upper()
        if not name:
            continue
        try:
            satisfied.add(Prerequisite(name))
        except ValueError:
            logger.warning(f"Unknown prerequisite {name!r} in NAVCADDY_SATISFIED_PREREQUISITES, ignoring")
    return frozenset(satisfied)


@dataclass
class RoutingConfig:
    """
    Configuration for routing.

    Attributes:
        satisfied_prerequisites: Prerequisites that hold regardless of session state,
            e.g. BAG_CONFIGURED once the player's bag has been set up (default: none)
        use_session_prerequisites: Answer ROUND_ACTIVE / COURSE_SELECTED from the
            live session (default: True)
    """

    satisfied_prerequisites: FrozenSet[Prerequisite] = field(default_factory=frozenset)
    use_session_prerequisites: bool = True

    @staticmethod
    def from_env() -> "RoutingConfig":
        """
        Load configuration from environment variables.

        Environment Variables:
            NAVCADDY_SATISFIED_PREREQUISITES: Comma-separated names (default: empty)
            NAVCADDY_SESSION_PREREQUISITES: Use session state (default: true)
        """
        return RoutingConfig(
            satisfied_prerequisites=_parse_prerequisites(os.getenv("NAVCADDY_SATISFIED_PREREQUISITES", "")),
            use_session_prerequisites=os.getenv("NAVCADDY_SESSION_PREREQUISITES", "true").lower() in ("true", "1", "yes"),
        )
