"""
Shot memory, miss patterns with time decay, and session context.
"""

from .config import MemoryConfig
from .decay import DecayCalculator, decay, decayed_confidence
from .miss_patterns import MissPatternMemory, RetentionReport
from .models import (
    Club,
    ClubType,
    ConversationTurn,
    DecayedMissPattern,
    Lie,
    MissDirection,
    MissPattern,
    PressureContext,
    Role,
    Round,
    SessionContext,
    Shot,
)
from .recorder import ShotRecorder
from .repository import InMemoryNavCaddyRepository, NavCaddyRepository
from .session import SessionContextManager

__all__ = [
    "MemoryConfig",
    "DecayCalculator",
    "decay",
    "decayed_confidence",
    "MissPatternMemory",
    "RetentionReport",
    "Club",
    "ClubType",
    "ConversationTurn",
    "DecayedMissPattern",
    "Lie",
    "MissDirection",
    "MissPattern",
    "PressureContext",
    "Role",
    "Round",
    "SessionContext",
    "Shot",
    "ShotRecorder",
    "InMemoryNavCaddyRepository",
    "NavCaddyRepository",
    "SessionContextManager",
]
