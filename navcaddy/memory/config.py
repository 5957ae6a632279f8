"""
Configuration for shot and miss-pattern memory.
"""

import os
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

BACKENDS = ("memory", "redis")


@dataclass
class MemoryConfig:
    """
    Memory settings.

    Attributes:
        decay_half_life_days: Age at which a pattern's weight halves (default: 14)
        retention_days: Age after which shots and patterns are evicted (default: 90)
        backend: Persistence backend, "memory" or "redis" (default: memory)
        redis_key_prefix: Namespace for Redis keys (default: navcaddy:)
    """

    decay_half_life_days: float = 14.0
    retention_days: int = 90
    backend: str = "memory"
    redis_key_prefix: str = "navcaddy:"

    def __post_init__(self):
        if self.decay_half_life_days <= 0:
            raise ValueError(
                f"decay_half_life_days must be positive, got {self.decay_half_life_days}"
            )
        if self.retention_days <= 0:
            raise ValueError(f"retention_days must be positive, got {self.retention_days}")
        if self.backend not in BACKENDS:
            raise ValueError(f"backend must be one of {BACKENDS}, got {self.backend!r}")

    @staticmethod
    def from_env() -> "MemoryConfig":
        """
        Load configuration from environment variables.

        Environment Variables:
            NAVCADDY_DECAY_HALF_LIFE_DAYS: Decay half-life in days (default: 14)
            NAVCADDY_RETENTION_DAYS: Retention window in days (default: 90)
            NAVCADDY_MEMORY_BACKEND: memory | redis (default: memory)
            NAVCADDY_REDIS_KEY_PREFIX: Redis key namespace (default: navcaddy:)
        """
        try:
            half_life = float(os.getenv("NAVCADDY_DECAY_HALF_LIFE_DAYS", "14"))
        except ValueError:
            logger.warning("Invalid NAVCADDY_DECAY_HALF_LIFE_DAYS, using default 14")
            half_life = 14.0

        try:
            retention_days = int(os.getenv("NAVCADDY_RETENTION_DAYS", "90"))
        except ValueError:
            logger.warning("Invalid NAVCADDY_RETENTION_DAYS, using default 90")
            retention_days = 90

        backend = os.getenv("NAVCADDY_MEMORY_BACKEND", "memory").strip().lower()
        if backend not in BACKENDS:
            logger.warning(f"Unknown NAVCADDY_MEMORY_BACKEND {backend!r}, using memory")
            backend = "memory"

        return MemoryConfig(
            decay_half_life_days=half_life,
            retention_days=retention_days,
            backend=backend,
            redis_key_prefix=os.getenv("NAVCADDY_REDIS_KEY_PREFIX", "navcaddy:"),
        )
