"""
Error taxonomy for NavCaddy services.

Categories:
    - Classification errors (network, timeout, malformed payload, unknown intent)
      are recovered locally by the intent classifier.
    - Validation errors fail fast at construction and are never retried.
    - Persistence errors are not wrapped; backend exceptions propagate unchanged.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(Enum):
    """High-level error categories"""
    NETWORK = "network"
    TIMEOUT = "timeout"
    CLASSIFICATION = "classification"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INVALID_INPUT = "invalid_input"


class NavCaddyError(Exception):
    """Base class for all NavCaddy errors."""

    category: ErrorCategory = ErrorCategory.CLASSIFICATION
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        category: Optional[ErrorCategory] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category
        self.cause = cause

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"


class ClassificationError(NavCaddyError):
    """Raised by classifier adapters on timeout, transport failure or a bad payload."""


class ValidationError(NavCaddyError, ValueError):
    """Raised when a value violates a construction-time invariant."""

    category = ErrorCategory.INVALID_INPUT
    recoverable = False

    def __init__(self, message: str):
        super().__init__(message, category=ErrorCategory.INVALID_INPUT)
