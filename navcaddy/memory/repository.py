"""
Persistence contract for NavCaddy memory, plus an in-process implementation.

Read operations return SnapshotStreams that re-emit after every mutation of
the data they cover. Session scalars (round, hole, last shot, last
recommendation) and conversation turns are stored separately: save_session()
never touches history, and add_conversation_turn() appends and trims in one
step so the trim always sees the new turn.

Backend exceptions are not translated; they propagate to the caller.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Protocol

from navcaddy.shared.streams import ChangeNotifier, SnapshotStream, Topic
from .models import ConversationTurn, MissPattern, SessionContext, Shot, utcnow

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 90


class NavCaddyRepository(Protocol):
    """Storage operations consumed by memory services."""

    async def record_shot(self, shot: Shot) -> None: ...

    def get_recent_shots(self, days: int = DEFAULT_RETENTION_DAYS) -> SnapshotStream: ...

    def get_shots_by_club(self, club_id: str) -> SnapshotStream: ...

    def get_shots_with_pressure(self) -> SnapshotStream: ...

    async def enforce_retention_policy(self) -> int: ...

    def get_miss_patterns(self) -> SnapshotStream: ...

    def get_patterns_by_club(self, club_id: str) -> SnapshotStream: ...

    async def update_pattern(self, pattern: MissPattern) -> None: ...

    async def delete_stale_patterns(self, cutoff: datetime) -> int: ...

    def get_session(self) -> SnapshotStream: ...

    async def save_session(self, context: SessionContext) -> None: ...

    async def add_conversation_turn(self, turn: ConversationTurn) -> None: ...

    async def clear_conversation_history(self) -> None: ...

    async def clear_memory(self) -> None: ...


def newest_first(shots: List[Shot]) -> List[Shot]:
    return sorted(shots, key=lambda shot: (shot.timestamp, shot.id), reverse=True)


class InMemoryNavCaddyRepository:
    """
    Dict-backed repository for a single player.

    All mutations run under one asyncio.Lock, so clear_memory() is atomic with
    respect to other writers in the same event loop.
    """

    def __init__(
        self,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        session_id: str = "default",
        notifier: Optional[ChangeNotifier] = None,
    ):
        self.retention_days = retention_days
        self.notifier = notifier or ChangeNotifier()
        self._session_id = session_id
        self._shots: Dict[str, Shot] = {}
        self._patterns: Dict[str, MissPattern] = {}
        self._session = SessionContext.empty(session_id)
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------ #
    # Shots
    # ------------------------------------------------------------------ #

    async def record_shot(self, shot: Shot) -> None:
        async with self._lock:
            self._shots[shot.id] = shot
        self.notifier.notify(Topic.SHOTS)

    def get_recent_shots(self, days: int = DEFAULT_RETENTION_DAYS) -> SnapshotStream:
        async def load() -> List[Shot]:
            cutoff = utcnow() - timedelta(days=days)
            return newest_first([s for s in self._shots.values() if s.timestamp >= cutoff])

        return SnapshotStream(load, self.notifier, {Topic.SHOTS})

    def get_shots_by_club(self, club_id: str) -> SnapshotStream:
        async def load() -> List[Shot]:
            return newest_first([s for s in self._shots.values() if s.club.id == club_id])

        return SnapshotStream(load, self.notifier, {Topic.SHOTS})

    def get_shots_with_pressure(self) -> SnapshotStream:
        async def load() -> List[Shot]:
            return newest_first([s for s in self._shots.values() if s.pressure_context.has_pressure])

        return SnapshotStream(load, self.notifier, {Topic.SHOTS})

    async def enforce_retention_policy(self) -> int:
        cutoff = utcnow() - timedelta(days=self.retention_days)
        async with self._lock:
            stale = [shot_id for shot_id, shot in self._shots.items() if shot.timestamp < cutoff]
            for shot_id in stale:
                del self._shots[shot_id]
        if stale:
            self.notifier.notify(Topic.SHOTS)
            logger.info(f"Retention removed {len(stale)} shots older than {self.retention_days} days")
        return len(stale)

    # ------------------------------------------------------------------ #
    # Patterns
    # ------------------------------------------------------------------ #

    def get_miss_patterns(self) -> SnapshotStream:
        async def load() -> List[MissPattern]:
            return list(self._patterns.values())

        return SnapshotStream(load, self.notifier, {Topic.PATTERNS})

    def get_patterns_by_club(self, club_id: str) -> SnapshotStream:
        async def load() -> List[MissPattern]:
            return [p for p in self._patterns.values() if p.club is not None and p.club.id == club_id]

        return SnapshotStream(load, self.notifier, {Topic.PATTERNS})

    async def update_pattern(self, pattern: MissPattern) -> None:
        async with self._lock:
            self._patterns[pattern.id] = pattern
        self.notifier.notify(Topic.PATTERNS)

    async def delete_stale_patterns(self, cutoff: datetime) -> int:
        async with self._lock:
            stale = [pid for pid, p in self._patterns.items() if p.last_occurrence < cutoff]
            for pattern_id in stale:
                del self._patterns[pattern_id]
        if stale:
            self.notifier.notify(Topic.PATTERNS)
        return len(stale)

    # ------------------------------------------------------------------ #
    # Session
    # ------------------------------------------------------------------ #

    def get_session(self) -> SnapshotStream:
        async def load() -> SessionContext:
            return self._session

        return SnapshotStream(load, self.notifier, {Topic.SESSION})

    async def save_session(self, context: SessionContext) -> None:
        async with self._lock:
            self._session = replace(context, conversation_history=self._session.conversation_history)
        self.notifier.notify(Topic.SESSION)

    async def add_conversation_turn(self, turn: ConversationTurn) -> None:
        async with self._lock:
            self._session = self._session.adding_turn(turn)
        self.notifier.notify(Topic.SESSION)

    async def clear_conversation_history(self) -> None:
        async with self._lock:
            self._session = self._session.without_history()
        self.notifier.notify(Topic.SESSION)

    async def clear_memory(self) -> None:
        async with self._lock:
            self._shots.clear()
            self._patterns.clear()
            self._session = SessionContext.empty(self._session_id)
        self.notifier.notify(Topic.SHOTS, Topic.PATTERNS, Topic.SESSION)
        logger.info(" Memory cleared (shots, patterns, session, conversation)")
