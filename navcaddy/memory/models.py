"""
Data models for shot memory, miss patterns and session context.

All models are immutable. Updates return new values via dataclasses.replace,
so a caller holding a reference never observes it change underneath.

Persistence representation (to_dict/from_dict) uses plain JSON types with
timestamps as integer epoch milliseconds.
"""

import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from navcaddy.shared.errors import ValidationError

MAX_CONVERSATION_TURNS = 10
MIN_HOLE = 1
MAX_HOLE = 18

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime truncated to milliseconds."""
    return to_millis_precision(datetime.now(timezone.utc))


def to_millis_precision(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def to_epoch_millis(value: datetime) -> int:
    return (to_millis_precision(value) - _EPOCH) // timedelta(milliseconds=1)


def from_epoch_millis(millis: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=int(millis))


def _new_id() -> str:
    return str(uuid.uuid4())


def _check_hole(hole: Optional[int], field_name: str = "hole_number") -> None:
    if hole is not None and not MIN_HOLE <= hole <= MAX_HOLE:
        raise ValidationError(f"{field_name} must be between {MIN_HOLE} and {MAX_HOLE}, got {hole}")


class Lie(Enum):
    TEE = "TEE"
    FAIRWAY = "FAIRWAY"
    ROUGH = "ROUGH"
    BUNKER = "BUNKER"
    GREEN = "GREEN"
    FRINGE = "FRINGE"
    HAZARD = "HAZARD"


class MissDirection(Enum):
    PUSH = "PUSH"
    PULL = "PULL"
    SLICE = "SLICE"
    HOOK = "HOOK"
    FAT = "FAT"
    THIN = "THIN"
    STRAIGHT = "STRAIGHT"


class ClubType(Enum):
    DRIVER = "DRIVER"
    WOOD = "WOOD"
    HYBRID = "HYBRID"
    IRON = "IRON"
    WEDGE = "WEDGE"
    PUTTER = "PUTTER"


class Role(Enum):
    """Conversation participant"""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Club:
    """A club in the player's bag"""
    id: str
    name: str
    type: ClubType
    estimated_carry: Optional[int] = None

    def __post_init__(self):
        if not self.id:
            raise ValidationError("Club id must not be empty")
        if self.estimated_carry is not None and self.estimated_carry < 0:
            raise ValidationError(f"estimated_carry must not be negative, got {self.estimated_carry}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "estimated_carry": self.estimated_carry,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Club":
        return cls(
            id=data["id"],
            name=data["name"],
            type=ClubType(data["type"]),
            estimated_carry=data.get("estimated_carry"),
        )


@dataclass(frozen=True)
class PressureContext:
    """Whether a shot was hit under competitive or scoring pressure"""
    is_user_tagged: bool = False
    is_inferred: bool = False
    scoring_context: Optional[str] = None

    @property
    def has_pressure(self) -> bool:
        return self.is_user_tagged or self.is_inferred

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_user_tagged": self.is_user_tagged,
            "is_inferred": self.is_inferred,
            "scoring_context": self.scoring_context,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PressureContext":
        return cls(
            is_user_tagged=bool(data.get("is_user_tagged", False)),
            is_inferred=bool(data.get("is_inferred", False)),
            scoring_context=data.get("scoring_context"),
        )


@dataclass(frozen=True)
class Shot:
    """A single recorded shot. Timestamps are kept at millisecond precision."""
    club: Club
    lie: Lie
    pressure_context: PressureContext = field(default_factory=PressureContext)
    miss_direction: Optional[MissDirection] = None
    hole_number: Optional[int] = None
    notes: Optional[str] = None
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        _check_hole(self.hole_number)
        object.__setattr__(self, "timestamp", to_millis_precision(self.timestamp))

    @property
    def is_miss(self) -> bool:
        return self.miss_direction is not None and self.miss_direction is not MissDirection.STRAIGHT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": to_epoch_millis(self.timestamp),
            "club": self.club.to_dict(),
            "miss_direction": self.miss_direction.value if self.miss_direction else None,
            "lie": self.lie.value,
            "pressure_context": self.pressure_context.to_dict(),
            "hole_number": self.hole_number,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Shot":
        direction = data.get("miss_direction")
        return cls(
            id=data["id"],
            timestamp=from_epoch_millis(data["timestamp"]),
            club=Club.from_dict(data["club"]),
            miss_direction=MissDirection(direction) if direction else None,
            lie=Lie(data["lie"]),
            pressure_context=PressureContext.from_dict(data.get("pressure_context") or {}),
            hole_number=data.get("hole_number"),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class MissPattern:
    """
    Aggregated directional miss tendency.

    `confidence` is the stored base value. Decay is applied by readers and is
    never written back.
    """
    id: str
    direction: MissDirection
    frequency: int
    confidence: float
    last_occurrence: datetime
    club: Optional[Club] = None
    pressure_context: Optional[PressureContext] = None

    def __post_init__(self):
        if self.frequency <= 0:
            raise ValidationError(f"frequency must be positive, got {self.frequency}")
        if math.isnan(self.confidence) or not 0.0 <= self.confidence <= 1.0:
            raise ValidationError(f"confidence must be between 0.0 and 1.0, got {self.confidence}")
        object.__setattr__(self, "last_occurrence", to_millis_precision(self.last_occurrence))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "direction": self.direction.value,
            "frequency": self.frequency,
            "confidence": self.confidence,
            "last_occurrence": to_epoch_millis(self.last_occurrence),
            "club": self.club.to_dict() if self.club else None,
            "pressure_context": self.pressure_context.to_dict() if self.pressure_context else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MissPattern":
        club = data.get("club")
        pressure = data.get("pressure_context")
        return cls(
            id=data["id"],
            direction=MissDirection(data["direction"]),
            frequency=int(data["frequency"]),
            confidence=float(data["confidence"]),
            last_occurrence=from_epoch_millis(data["last_occurrence"]),
            club=Club.from_dict(club) if club else None,
            pressure_context=PressureContext.from_dict(pressure) if pressure else None,
        )


@dataclass(frozen=True)
class DecayedMissPattern:
    """Read-side view of a MissPattern carrying its decayed confidence."""
    pattern: MissPattern
    confidence: float

    @property
    def direction(self) -> MissDirection:
        return self.pattern.direction

    @property
    def club(self) -> Optional[Club]:
        return self.pattern.club

    @property
    def frequency(self) -> int:
        return self.pattern.frequency

    @property
    def last_occurrence(self) -> datetime:
        return self.pattern.last_occurrence

    def to_dict(self) -> Dict[str, Any]:
        data = self.pattern.to_dict()
        data["base_confidence"] = self.pattern.confidence
        data["confidence"] = self.confidence
        return data


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        object.__setattr__(self, "timestamp", to_millis_precision(self.timestamp))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": to_epoch_millis(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConversationTurn":
        return cls(
            id=data["id"],
            role=Role(data["role"]),
            content=data["content"],
            timestamp=from_epoch_millis(data["timestamp"]),
        )


@dataclass(frozen=True)
class Round:
    """An in-progress round. `scores` maps hole number to strokes."""
    course_name: Optional[str] = None
    scores: Mapping[int, int] = field(default_factory=dict)
    id: str = field(default_factory=_new_id)
    start_time: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        for hole, strokes in self.scores.items():
            _check_hole(hole, "score hole")
            if strokes <= 0:
                raise ValidationError(f"strokes must be positive, got {strokes} on hole {hole}")
        object.__setattr__(self, "scores", dict(self.scores))
        object.__setattr__(self, "start_time", to_millis_precision(self.start_time))

    def with_score(self, hole: int, strokes: int) -> "Round":
        scores = dict(self.scores)
        scores[hole] = strokes
        return replace(self, scores=scores)

    @property
    def total_strokes(self) -> int:
        return sum(self.scores.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "start_time": to_epoch_millis(self.start_time),
            "course_name": self.course_name,
            "scores": {str(hole): strokes for hole, strokes in sorted(self.scores.items())},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Round":
        return cls(
            id=data["id"],
            start_time=from_epoch_millis(data["start_time"]),
            course_name=data.get("course_name"),
            scores={int(hole): int(strokes) for hole, strokes in (data.get("scores") or {}).items()},
        )


@dataclass(frozen=True)
class SessionContext:
    """
    Bounded conversational and round state.

    conversation_history is oldest-first and never longer than
    MAX_CONVERSATION_TURNS.
    """
    session_id: str
    current_round: Optional[Round] = None
    current_hole: Optional[int] = None
    last_shot: Optional[Shot] = None
    last_recommendation: Optional[str] = None
    conversation_history: Tuple[ConversationTurn, ...] = ()

    def __post_init__(self):
        _check_hole(self.current_hole, "current_hole")
        history = tuple(self.conversation_history)
        if len(history) > MAX_CONVERSATION_TURNS:
            raise ValidationError(
                f"conversation_history holds at most {MAX_CONVERSATION_TURNS} turns, got {len(history)}"
            )
        object.__setattr__(self, "conversation_history", history)

    @classmethod
    def empty(cls, session_id: str = "default") -> "SessionContext":
        return cls(session_id=session_id)

    @property
    def is_empty(self) -> bool:
        return self == SessionContext.empty(self.session_id)

    def adding_turn(self, turn: ConversationTurn) -> "SessionContext":
        """New context with `turn` appended and the oldest turns dropped past the bound."""
        history = (self.conversation_history + (turn,))[-MAX_CONVERSATION_TURNS:]
        return replace(self, conversation_history=history)

    def without_history(self) -> "SessionContext":
        return replace(self, conversation_history=())

    def to_prompt_context(self) -> Dict[str, Any]:
        """Compact view forwarded to the intent classifier."""
        context: Dict[str, Any] = {}
        if self.current_round is not None:
            context["course_name"] = self.current_round.course_name
        if self.current_hole is not None:
            context["current_hole"] = self.current_hole
        if self.last_shot is not None:
            context["last_shot"] = {
                "club": self.last_shot.club.name,
                "lie": self.last_shot.lie.value,
                "miss_direction": self.last_shot.miss_direction.value if self.last_shot.miss_direction else None,
            }
        if self.last_recommendation:
            context["last_recommendation"] = self.last_recommendation
        if self.conversation_history:
            context["conversation_history"] = [
                {"role": turn.role.value, "content": turn.content}
                for turn in self.conversation_history
            ]
        return context

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "current_round": self.current_round.to_dict() if self.current_round else None,
            "current_hole": self.current_hole,
            "last_shot": self.last_shot.to_dict() if self.last_shot else None,
            "last_recommendation": self.last_recommendation,
            "conversation_history": [turn.to_dict() for turn in self.conversation_history],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionContext":
        current_round = data.get("current_round")
        last_shot = data.get("last_shot")
        return cls(
            session_id=data["session_id"],
            current_round=Round.from_dict(current_round) if current_round else None,
            current_hole=data.get("current_hole"),
            last_shot=Shot.from_dict(last_shot) if last_shot else None,
            last_recommendation=data.get("last_recommendation"),
            conversation_history=tuple(
                ConversationTurn.from_dict(turn) for turn in data.get("conversation_history") or ()
            ),
        )
