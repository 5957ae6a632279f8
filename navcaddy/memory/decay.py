"""
Pattern decay calculator.

Older observations weigh less: an event's weight halves every half-life and
is treated as zero once it is six half-lives old (about 1.5% remaining).

    decay(age, H) = 0.5 ** (age / H)          for age < 6H
                  = 0.0                        otherwise

Decay is applied only when patterns are read. Stored confidences are always
the undecayed base value.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from navcaddy.shared.errors import ValidationError
from .models import utcnow

DEFAULT_HALF_LIFE_DAYS = 14.0
NEGLIGIBLE_HALF_LIVES = 6
SECONDS_PER_DAY = 86400.0


def decay(age_days: float, half_life_days: float = DEFAULT_HALF_LIFE_DAYS) -> float:
    """Weight multiplier in [0, 1] for an event `age_days` old."""
    if half_life_days <= 0:
        raise ValidationError(f"half_life_days must be positive, got {half_life_days}")
    if math.isnan(age_days) or age_days < 0:
        raise ValidationError(f"age_days must not be negative, got {age_days}")
    if age_days >= NEGLIGIBLE_HALF_LIVES * half_life_days:
        return 0.0
    return 0.5 ** (age_days / half_life_days)


def age_in_days(occurred_at: datetime, now: datetime) -> float:
    """Age of an event in fractional days; rejects events in the future."""
    if occurred_at > now:
        raise ValidationError(f"timestamp {occurred_at.isoformat()} is later than now ({now.isoformat()})")
    return (now - occurred_at).total_seconds() / SECONDS_PER_DAY


def decayed_confidence(
    base: float,
    last_occurrence: datetime,
    now: Optional[datetime] = None,
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
) -> float:
    """`base` scaled by the decay of `last_occurrence` relative to `now`."""
    if math.isnan(base) or not 0.0 <= base <= 1.0:
        raise ValidationError(f"base confidence must be between 0.0 and 1.0, got {base}")
    now = now or utcnow()
    return base * decay(age_in_days(last_occurrence, now), half_life_days)


class DecayCalculator:
    """Decay bound to a configured half-life and retention window."""

    def __init__(self, half_life_days: float = DEFAULT_HALF_LIFE_DAYS, retention_days: int = 90):
        if half_life_days <= 0:
            raise ValidationError(f"half_life_days must be positive, got {half_life_days}")
        self.half_life_days = half_life_days
        self.retention_days = retention_days

    def decay(self, age_days: float) -> float:
        return decay(age_days, self.half_life_days)

    def decayed_confidence(self, base: float, last_occurrence: datetime, now: Optional[datetime] = None) -> float:
        return decayed_confidence(base, last_occurrence, now, self.half_life_days)

    def retention_cutoff(self, now: Optional[datetime] = None) -> datetime:
        return (now or utcnow()) - timedelta(days=self.retention_days)

    def is_within_retention(self, occurred_at: datetime, now: Optional[datetime] = None) -> bool:
        """False only for events strictly older than the retention window."""
        return occurred_at >= self.retention_cutoff(now)
