"""
Routing outcomes.

RoutingResult is a closed union; exactly one variant describes what the
caller should do with a routed or confirmed intent.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

from navcaddy.intent.models import ParsedIntent, RoutingTarget
from navcaddy.shared.errors import ValidationError
from .prerequisites import Prerequisite


@dataclass(frozen=True)
class Navigate:
    target: RoutingTarget
    intent: ParsedIntent


@dataclass(frozen=True)
class NoNavigation:
    intent: ParsedIntent
    response: str


@dataclass(frozen=True)
class PrerequisiteMissing:
    intent: ParsedIntent
    missing: Tuple[Prerequisite, ...]
    message: str

    def __post_init__(self):
        missing = tuple(self.missing)
        if not missing:
            raise ValidationError("PrerequisiteMissing requires at least one missing prerequisite")
        object.__setattr__(self, "missing", missing)


@dataclass(frozen=True)
class ConfirmationRequired:
    intent: ParsedIntent
    message: str


RoutingResult = Union[Navigate, NoNavigation, PrerequisiteMissing, ConfirmationRequired]


def routing_to_dict(result: RoutingResult) -> Dict[str, Any]:
    if isinstance(result, Navigate):
        return {"type": "navigate", "intent": result.intent.to_dict(), "target": result.target.to_dict()}
    if isinstance(result, NoNavigation):
        return {"type": "no_navigation", "intent": result.intent.to_dict(), "response": result.response}
    if isinstance(result, PrerequisiteMissing):
        return {
            "type": "prerequisite_missing",
            "intent": result.intent.to_dict(),
            "missing": [p.value for p in result.missing],
            "message": result.message,
        }
    if isinstance(result, ConfirmationRequired):
        return {"type": "confirmation_required", "intent": result.intent.to_dict(), "message": result.message}
    raise TypeError(f"Unknown routing result: {type(result).__name__}")
