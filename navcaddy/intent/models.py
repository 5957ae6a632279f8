"""
Intent data models.

ClassificationResult is a closed union of three frozen variants:
    Route(intent, target)   confidence >= route threshold
    Confirm(intent, message) confirm threshold <= confidence < route threshold
    Clarify(response)        everything else, including classifier failure

Callers branch with isinstance() over exactly these three types.
"""

import math
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from navcaddy.shared.errors import ValidationError

MIN_FATIGUE = 1
MAX_FATIGUE = 10


class IntentType(Enum):
    CLUB_ADJUSTMENT = "CLUB_ADJUSTMENT"
    RECOVERY_CHECK = "RECOVERY_CHECK"
    SHOT_RECOMMENDATION = "SHOT_RECOMMENDATION"
    SCORE_ENTRY = "SCORE_ENTRY"
    PATTERN_QUERY = "PATTERN_QUERY"
    DRILL_REQUEST = "DRILL_REQUEST"
    WEATHER_CHECK = "WEATHER_CHECK"
    STATS_LOOKUP = "STATS_LOOKUP"
    ROUND_START = "ROUND_START"
    ROUND_END = "ROUND_END"
    EQUIPMENT_INFO = "EQUIPMENT_INFO"
    COURSE_INFO = "COURSE_INFO"
    SETTINGS_CHANGE = "SETTINGS_CHANGE"
    HELP_REQUEST = "HELP_REQUEST"
    FEEDBACK = "FEEDBACK"
    BAILOUT_QUERY = "BAILOUT_QUERY"
    READINESS_CHECK = "READINESS_CHECK"

    @classmethod
    def parse(cls, value: str) -> "IntentType":
        """Strict lookup by registry key; unknown keys raise ValueError."""
        try:
            return cls(value.strip().upper())
        except (AttributeError, ValueError):
            raise ValueError(f"Unknown intent type: {value!r}")


class Module(Enum):
    CADDY = "CADDY"
    COACH = "COACH"
    RECOVERY = "RECOVERY"
    SETTINGS = "SETTINGS"


class EntityType(Enum):
    CLUB = "club"
    YARDAGE = "yardage"
    LIE = "lie"
    WIND = "wind"
    FATIGUE = "fatigue"
    PAIN = "pain"
    SCORE_CONTEXT = "score_context"
    HOLE_NUMBER = "hole_number"
    DRILL_TYPE = "drill_type"
    STAT_TYPE = "stat_type"
    COURSE_NAME = "course_name"
    EQUIPMENT_TYPE = "equipment_type"
    SETTING_KEY = "setting_key"
    FEEDBACK_TEXT = "feedback_text"


@dataclass(frozen=True)
class RoutingTarget:
    """Destination descriptor resolved from the intent registry."""
    module: Module
    screen: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"module": self.module.value, "screen": self.screen, "parameters": dict(self.parameters)}


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ExtractedEntities:
    """Entity slots pulled from the input. Every field is optional."""
    club: Optional[str] = None
    yardage: Optional[int] = None
    lie: Optional[str] = None
    wind: Optional[str] = None
    fatigue: Optional[int] = None
    pain: Optional[str] = None
    score_context: Optional[str] = None
    hole_number: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self == ExtractedEntities()

    def has(self, entity_type: EntityType) -> bool:
        """True when the slot is filled. Slots this model does not carry count as present."""
        if not hasattr(self, entity_type.value):
            return True
        return getattr(self, entity_type.value) is not None

    def sanitized(self) -> "ExtractedEntities":
        """Copy with out-of-range numeric slots dropped (fatigue is clamped)."""
        yardage = self.yardage if self.yardage is not None and self.yardage > 0 else None
        fatigue = self.fatigue
        if fatigue is not None:
            fatigue = max(MIN_FATIGUE, min(MAX_FATIGUE, fatigue))
        hole = self.hole_number if self.hole_number is not None and 1 <= self.hole_number <= 18 else None
        return replace(self, yardage=yardage, fatigue=fatigue, hole_number=hole)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "club": self.club,
            "yardage": self.yardage,
            "lie": self.lie,
            "wind": self.wind,
            "fatigue": self.fatigue,
            "pain": self.pain,
            "score_context": self.score_context,
            "hole_number": self.hole_number,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ExtractedEntities":
        if not data:
            return cls()
        return cls(
            club=_optional_str(data.get("club")),
            yardage=_optional_int(data.get("yardage")),
            lie=_optional_str(data.get("lie")),
            wind=_optional_str(data.get("wind")),
            fatigue=_optional_int(data.get("fatigue")),
            pain=_optional_str(data.get("pain")),
            score_context=_optional_str(data.get("score_context")),
            hole_number=_optional_int(data.get("hole_number")),
        )


@dataclass(frozen=True)
class ParsedIntent:
    """Classified intent. Confidence is clamped to [0, 1] on construction."""
    intent_type: IntentType
    confidence: float
    entities: ExtractedEntities = field(default_factory=ExtractedEntities)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_goal: Optional[str] = None
    routing_target: Optional[RoutingTarget] = None

    def __post_init__(self):
        try:
            confidence = float(self.confidence)
        except (TypeError, ValueError):
            raise ValidationError(f"confidence must be a number, got {self.confidence!r}")
        if math.isnan(confidence):
            raise ValidationError("confidence must not be NaN")
        object.__setattr__(self, "confidence", max(0.0, min(1.0, confidence)))

    def with_target(self, target: Optional[RoutingTarget]) -> "ParsedIntent":
        return replace(self, routing_target=target)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "intent_type": self.intent_type.value,
            "confidence": self.confidence,
            "entities": self.entities.to_dict(),
            "user_goal": self.user_goal,
            "routing_target": self.routing_target.to_dict() if self.routing_target else None,
        }


@dataclass(frozen=True)
class IntentSuggestion:
    """A tappable intent offered when the input could not be routed."""
    intent_type: IntentType
    label: str
    description: str
    module: Module
    is_offline_available: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent_type": self.intent_type.value,
            "label": self.label,
            "description": self.description,
            "module": self.module.value,
            "is_offline_available": self.is_offline_available,
        }


@dataclass(frozen=True)
class ClarificationResponse:
    message: str
    suggestions: Tuple[IntentSuggestion, ...]
    original_input: str
    degraded: bool = False

    def __post_init__(self):
        object.__setattr__(self, "suggestions", tuple(self.suggestions))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "original_input": self.original_input,
            "degraded": self.degraded,
        }


@dataclass(frozen=True)
class Route:
    intent: ParsedIntent
    target: Optional[RoutingTarget]


@dataclass(frozen=True)
class Confirm:
    intent: ParsedIntent
    message: str


@dataclass(frozen=True)
class Clarify:
    response: ClarificationResponse


ClassificationResult = Union[Route, Confirm, Clarify]


def classification_to_dict(result: ClassificationResult) -> Dict[str, Any]:
    if isinstance(result, Route):
        return {
            "outcome": "route",
            "intent": result.intent.to_dict(),
            "target": result.target.to_dict() if result.target else None,
        }
    if isinstance(result, Confirm):
        return {"outcome": "confirm", "intent": result.intent.to_dict(), "message": result.message}
    if isinstance(result, Clarify):
        return {"outcome": "clarify", "clarification": result.response.to_dict()}
    raise TypeError(f"Unknown classification result: {type(result).__name__}")


@dataclass
class ClassifierResponse:
    """Raw adapter output before parsing."""
    raw_response: str
    latency_ms: float
    model_name: str
    token_count: Optional[int] = None
