"""
Miss-pattern memory.

Aggregates recorded shots into per-(club, direction, pressure) patterns and
serves them with time decay applied.

Write path: upsert_for_shot() recomputes the patterns of the shot's
(club, pressure) group from the retained shots of that club. Frequency is
the number of misses in a direction and the base confidence is their share
of the group's shots. Recomputations for one group are serialized by a
per-group lock (covering every (club, direction) key in it) so concurrent
recordings never lose an update. ShotRecorder holds the MemoryGate shared
across a whole recording and clear_memory() holds it exclusively, so a wipe
never interleaves with the steps of a recording.

Read path: every read decays the stored base confidence against
last_occurrence and orders results by decayed confidence, highest first.
Decayed values are returned as DecayedMissPattern and never written back.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Dict, List, Optional, Tuple

from .config import MemoryConfig
from .decay import DecayCalculator
from .models import (
    DecayedMissPattern,
    MissDirection,
    MissPattern,
    Shot,
    utcnow,
)
from .repository import NavCaddyRepository

logger = logging.getLogger(__name__)

GroupKey = Tuple[str, bool]


def pattern_id_for(club_id: str, direction: MissDirection, under_pressure: bool) -> str:
    group = "pressure" if under_pressure else "normal"
    return f"{club_id}:{direction.value.lower()}:{group}"


@dataclass
class RetentionReport:
    """Counts removed by a retention sweep"""
    shots_deleted: int
    patterns_deleted: int

    @property
    def total(self) -> int:
        return self.shots_deleted + self.patterns_deleted

    def to_dict(self) -> Dict[str, int]:
        return {
            "shots_deleted": self.shots_deleted,
            "patterns_deleted": self.patterns_deleted,
            "total": self.total,
        }


class MemoryGate:
    """
    Shared/exclusive gate between shot recordings and a full memory wipe.

    Any number of recordings may hold the gate at once; a wipe waits for them
    to drain and holds it alone. A pending wipe blocks new recordings so it is
    never starved.
    """

    def __init__(self):
        self._condition = asyncio.Condition()
        self._recordings = 0
        self._wipes_pending = 0
        self._wiping = False

    @asynccontextmanager
    async def recording(self) -> AsyncIterator[None]:
        async with self._condition:
            await self._condition.wait_for(lambda: not self._wiping and self._wipes_pending == 0)
            self._recordings += 1
        try:
            yield
        finally:
            async with self._condition:
                self._recordings -= 1
                self._condition.notify_all()

    @asynccontextmanager
    async def wiping(self) -> AsyncIterator[None]:
        async with self._condition:
            self._wipes_pending += 1
            try:
                await self._condition.wait_for(lambda: not self._wiping and self._recordings == 0)
            finally:
                self._wipes_pending -= 1
                self._condition.notify_all()
            self._wiping = True
        try:
            yield
        finally:
            async with self._condition:
                self._wiping = False
                self._condition.notify_all()


class MissPatternMemory:
    """Decayed, queryable miss patterns backed by a NavCaddyRepository."""

    def __init__(self, repository: NavCaddyRepository, config: Optional[MemoryConfig] = None):
        self.repository = repository
        self.config = config or MemoryConfig()
        self.calculator = DecayCalculator(self.config.decay_half_life_days, self.config.retention_days)
        self._key_locks: Dict[GroupKey, asyncio.Lock] = {}
        self.gate = MemoryGate()

    def _lock_for(self, key: GroupKey) -> asyncio.Lock:
        lock = self._key_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._key_locks[key] = lock
        return lock

    # ------------------------------------------------------------------ #
    # Write path
    # ------------------------------------------------------------------ #

    async def upsert_for_shot(self, shot: Shot, now: Optional[datetime] = None) -> Optional[MissPattern]:
        """
        Refresh the patterns of the shot's (club, pressure) group.

        Every directional pattern in the group is recomputed so their shares
        stay consistent with the new shot. Returns the pattern matching the
        shot's own miss, or None when the shot is not a miss.
        """
        under_pressure = shot.pressure_context.has_pressure
        key: GroupKey = (shot.club.id, under_pressure)

        async with self._lock_for(key):
            patterns = await self._compute_group(shot, under_pressure, now or utcnow())
            for pattern in patterns.values():
                await self.repository.update_pattern(pattern)

        pattern = patterns.get(shot.miss_direction) if shot.is_miss else None
        if pattern is not None:
            logger.debug(
                f"Pattern {pattern.id} upserted: frequency={pattern.frequency}, "
                f"base_confidence={pattern.confidence:.2f}"
            )
        return pattern

    async def _compute_group(
        self, shot: Shot, under_pressure: bool, now: datetime
    ) -> Dict[MissDirection, MissPattern]:
        club_shots = await self.repository.get_shots_by_club(shot.club.id).first()
        group = [
            s for s in club_shots
            if self.calculator.is_within_retention(s.timestamp, now)
            and s.pressure_context.has_pressure == under_pressure
        ]

        misses: Dict[MissDirection, List[Shot]] = {}
        for s in group:
            if s.is_miss:
                misses.setdefault(s.miss_direction, []).append(s)

        patterns: Dict[MissDirection, MissPattern] = {}
        for direction, matching in misses.items():
            latest = max(matching, key=lambda s: s.timestamp)
            patterns[direction] = MissPattern(
                id=pattern_id_for(shot.club.id, direction, under_pressure),
                direction=direction,
                club=latest.club,
                frequency=len(matching),
                confidence=len(matching) / len(group),
                pressure_context=latest.pressure_context if under_pressure else None,
                last_occurrence=latest.timestamp,
            )
        return patterns

    async def rebuild_patterns(self, now: Optional[datetime] = None) -> int:
        """Recompute every pattern from retained shots. Returns the number stored."""
        now = now or utcnow()
        async with self.gate.recording():
            shots = await self.repository.get_recent_shots(self.config.retention_days).first()
            groups: Dict[GroupKey, Shot] = {}
            for shot in shots:
                groups.setdefault((shot.club.id, shot.pressure_context.has_pressure), shot)

            stored = 0
            for shot in groups.values():
                async with self._lock_for((shot.club.id, shot.pressure_context.has_pressure)):
                    patterns = await self._compute_group(shot, shot.pressure_context.has_pressure, now)
                    for pattern in patterns.values():
                        await self.repository.update_pattern(pattern)
                stored += len(patterns)
        logger.info(f"Rebuilt {stored} miss patterns from {len(shots)} retained shots")
        return stored

    # ------------------------------------------------------------------ #
    # Read path
    # ------------------------------------------------------------------ #

    def _decayed(self, patterns: List[MissPattern], now: datetime) -> List[DecayedMissPattern]:
        views = [
            DecayedMissPattern(
                pattern=p,
                confidence=self.calculator.decayed_confidence(p.confidence, p.last_occurrence, now),
            )
            for p in patterns
        ]
        views.sort(key=lambda v: (-v.confidence, -v.last_occurrence.timestamp(), v.pattern.id))
        return views

    async def get_patterns(
        self,
        club_id: Optional[str] = None,
        pressure_only: bool = False,
        now: Optional[datetime] = None,
    ) -> List[DecayedMissPattern]:
        """Decayed patterns, highest decayed confidence first."""
        if club_id is not None:
            patterns = await self.repository.get_patterns_by_club(club_id).first()
        else:
            patterns = await self.repository.get_miss_patterns().first()
        if pressure_only:
            patterns = [p for p in patterns if p.pressure_context is not None and p.pressure_context.has_pressure]
        return self._decayed(patterns, now or utcnow())

    def patterns_stream(self, club_id: Optional[str] = None):
        """Live stream of decayed pattern lists."""
        if club_id is not None:
            source = self.repository.get_patterns_by_club(club_id)
        else:
            source = self.repository.get_miss_patterns()

        async def decay_snapshot(patterns: List[MissPattern]) -> List[DecayedMissPattern]:
            return self._decayed(patterns, utcnow())

        return source.map(decay_snapshot)

    async def dominant_pattern(
        self,
        club_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[DecayedMissPattern]:
        patterns = await self.get_patterns(club_id=club_id, now=now)
        return patterns[0] if patterns else None

    async def dominant_miss(
        self,
        club_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[MissDirection]:
        """Direction of the highest decayed-confidence pattern, or None when there are none."""
        pattern = await self.dominant_pattern(club_id=club_id, now=now)
        return pattern.direction if pattern else None

    # ------------------------------------------------------------------ #
    # Retention and reset
    # ------------------------------------------------------------------ #

    async def delete_stale_patterns(self, now: Optional[datetime] = None) -> int:
        """Evict patterns whose last occurrence is older than the retention window."""
        cutoff = self.calculator.retention_cutoff(now)
        removed = await self.repository.delete_stale_patterns(cutoff)
        if removed:
            logger.info(f"Removed {removed} stale miss patterns (cutoff {cutoff.isoformat()})")
        return removed

    async def enforce_retention(self, now: Optional[datetime] = None) -> RetentionReport:
        shots_deleted = await self.repository.enforce_retention_policy()
        patterns_deleted = await self.delete_stale_patterns(now)
        return RetentionReport(shots_deleted=shots_deleted, patterns_deleted=patterns_deleted)

    async def clear_memory(self) -> None:
        """
        User-initiated wipe of shots, patterns, session and conversation.

        Waits for in-flight recordings to finish and holds off new ones until
        the wipe completes.
        """
        async with self.gate.wiping():
            await self.repository.clear_memory()
        logger.info(" Player memory wiped on request")
