"""
Configuration for the NavCaddy intent classifier.

Thresholds gate the three-way decision on classifier confidence:
    confidence >= route_threshold                      -> route
    confirm_threshold <= confidence < route_threshold  -> confirm
    confidence < confirm_threshold                     -> clarify
"""

import os
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        logger.warning(f"Invalid {name}, using default {default}")
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        logger.warning(f"Invalid {name}, using default {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() in _TRUE_VALUES


@dataclass
class IntentConfig:
    """
    Configuration for intent classification.

    Attributes:
        gemini_api_key: Gemini API key; empty disables the LLM classifier (default: "")
        gemini_model: Gemini model name (default: gemini-2.5-flash-lite)
        route_threshold: Minimum confidence to route directly (default: 0.75)
        confirm_threshold: Minimum confidence to ask for confirmation (default: 0.50)
        max_suggestions: Maximum clarification suggestions (default: 3)
        classifier_timeout: Per-attempt LLM timeout in seconds (default: 5.0)
        max_retries: Retries for rate-limited or unavailable responses (default: 2)
        retry_base_delay: First retry delay in seconds, doubled per attempt (default: 0.5)
        include_context: Forward session context to the classifier (default: True)
        log_classifications: Log every classification decision (default: True)
    """

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash-lite"
    route_threshold: float = 0.75
    confirm_threshold: float = 0.50
    max_suggestions: int = 3
    classifier_timeout: float = 5.0
    max_retries: int = 2
    retry_base_delay: float = 0.5
    include_context: bool = True
    log_classifications: bool = True

    def __post_init__(self):
        """Validate configuration after initialization"""
        if not 0.0 <= self.confirm_threshold <= self.route_threshold <= 1.0:
            raise ValueError(
                "thresholds must satisfy 0.0 <= confirm_threshold <= route_threshold <= 1.0, "
                f"got confirm={self.confirm_threshold}, route={self.route_threshold}"
            )

        if self.max_suggestions <= 0:
            raise ValueError(f"max_suggestions must be positive, got {self.max_suggestions}")

        if self.classifier_timeout <= 0:
            raise ValueError(f"classifier_timeout must be positive, got {self.classifier_timeout}")

        if self.max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {self.max_retries}")

        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must not be negative, got {self.retry_base_delay}")

        if not self.gemini_api_key:
            logger.warning(
                "️ GEMINI_API_KEY not set. LLM classification disabled; "
                "every input will fall back to local suggestions."
            )

    @property
    def classification_deadline(self) -> float:
        """Upper bound for one classification including retries and backoff."""
        attempts = self.max_retries + 1
        backoff = sum(self.retry_base_delay * (2 ** i) for i in range(self.max_retries))
        return attempts * self.classifier_timeout + backoff

    @property
    def llm_enabled(self) -> bool:
        return bool(self.gemini_api_key)

    @staticmethod
    def from_env() -> "IntentConfig":
        """
        Load configuration from environment variables.

        Environment Variables:
            GEMINI_API_KEY: Gemini API key (default: unset, LLM disabled)
            GEMINI_MODEL: Gemini model name (default: gemini-2.5-flash-lite)
            NAVCADDY_ROUTE_THRESHOLD: Route threshold (default: 0.75)
            NAVCADDY_CONFIRM_THRESHOLD: Confirm threshold (default: 0.50)
            NAVCADDY_MAX_SUGGESTIONS: Clarification suggestions (default: 3)
            NAVCADDY_CLASSIFIER_TIMEOUT: Per-attempt timeout in seconds (default: 5.0)
            NAVCADDY_CLASSIFIER_MAX_RETRIES: Retries on 429/503 (default: 2)
            NAVCADDY_CLASSIFIER_RETRY_DELAY: Base retry delay in seconds (default: 0.5)
            NAVCADDY_INCLUDE_CONTEXT: Forward session context (default: true)
            NAVCADDY_LOG_CLASSIFICATIONS: Log classifications (default: true)
        """
        return IntentConfig(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite"),
            route_threshold=_env_float("NAVCADDY_ROUTE_THRESHOLD", 0.75),
            confirm_threshold=_env_float("NAVCADDY_CONFIRM_THRESHOLD", 0.50),
            max_suggestions=_env_int("NAVCADDY_MAX_SUGGESTIONS", 3),
            classifier_timeout=_env_float("NAVCADDY_CLASSIFIER_TIMEOUT", 5.0),
            max_retries=_env_int("NAVCADDY_CLASSIFIER_MAX_RETRIES", 2),
            retry_base_delay=_env_float("NAVCADDY_CLASSIFIER_RETRY_DELAY", 0.5),
            include_context=_env_bool("NAVCADDY_INCLUDE_CONTEXT", True),
            log_classifications=_env_bool("NAVCADDY_LOG_CLASSIFICATIONS", True),
        )
