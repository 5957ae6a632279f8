"""
Routing: prerequisite gating, routing outcomes and the per-session input pipeline.
"""

from .config import RoutingConfig
from .models import (
    ConfirmationRequired,
    Navigate,
    NoNavigation,
    PrerequisiteMissing,
    RoutingResult,
)
from .orchestrator import RoutingOrchestrator
from .pipeline import InputPipeline, PipelineOutcome, Superseded
from .prerequisites import (
    Prerequisite,
    PrerequisiteChecker,
    SessionPrerequisiteChecker,
    StaticPrerequisiteChecker,
    check_all,
)

__all__ = [
    "RoutingConfig",
    "ConfirmationRequired",
    "Navigate",
    "NoNavigation",
    "PrerequisiteMissing",
    "RoutingResult",
    "RoutingOrchestrator",
    "InputPipeline",
    "PipelineOutcome",
    "Superseded",
    "Prerequisite",
    "PrerequisiteChecker",
    "SessionPrerequisiteChecker",
    "StaticPrerequisiteChecker",
    "check_all",
]
