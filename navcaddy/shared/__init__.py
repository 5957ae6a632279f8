"""
Shared utilities for NavCaddy services.
"""

from .errors import (
    ErrorCategory,
    NavCaddyError,
    ClassificationError,
    ValidationError,
)
from .streams import ChangeNotifier, SnapshotStream, Topic

__all__ = [
    "ErrorCategory",
    "NavCaddyError",
    "ClassificationError",
    "ValidationError",
    "ChangeNotifier",
    "SnapshotStream",
    "Topic",
]
