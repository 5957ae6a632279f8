"""
Redis-backed NavCaddy repository.

Key layout (prefix defaults to "navcaddy:"):
    {prefix}shots      HASH   shot id -> Shot JSON
    {prefix}patterns   HASH   pattern id -> MissPattern JSON
    {prefix}session    STRING SessionContext JSON without conversation history
    {prefix}turns      LIST   ConversationTurn JSON, oldest first, at most 10 entries

Conversation turns are appended with RPUSH and trimmed with LTRIM inside one
MULTI/EXEC transaction, so the trim always sees the new turn.

Change notifications are process-local: streams re-emit after mutations made
through this repository instance.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import List, Optional

import redis.asyncio as redis

from navcaddy.shared.streams import ChangeNotifier, SnapshotStream, Topic
from .models import (
    MAX_CONVERSATION_TURNS,
    ConversationTurn,
    MissPattern,
    SessionContext,
    Shot,
    utcnow,
)
from .repository import DEFAULT_RETENTION_DAYS, newest_first

logger = logging.getLogger(__name__)


class RedisNavCaddyRepository:
    """NavCaddyRepository implementation over redis.asyncio."""

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "navcaddy:",
        retention_days: int = DEFAULT_RETENTION_DAYS,
        session_id: str = "default",
        notifier: Optional[ChangeNotifier] = None,
    ):
        self.client = client
        self.retention_days = retention_days
        self.notifier = notifier or ChangeNotifier()
        self._session_id = session_id
        self.shots_key = f"{key_prefix}shots"
        self.patterns_key = f"{key_prefix}patterns"
        self.session_key = f"{key_prefix}session"
        self.turns_key = f"{key_prefix}turns"

    # ------------------------------------------------------------------ #
    # Shots
    # ------------------------------------------------------------------ #

    async def _load_shots(self) -> List[Shot]:
        raw = await self.client.hgetall(self.shots_key)
        return newest_first([Shot.from_dict(json.loads(value)) for value in raw.values()])

    async def record_shot(self, shot: Shot) -> None:
        await self.client.hset(self.shots_key, shot.id, json.dumps(shot.to_dict()))
        self.notifier.notify(Topic.SHOTS)

    def get_recent_shots(self, days: int = DEFAULT_RETENTION_DAYS) -> SnapshotStream:
        async def load() -> List[Shot]:
            cutoff = utcnow() - timedelta(days=days)
            return [s for s in await self._load_shots() if s.timestamp >= cutoff]

        return SnapshotStream(load, self.notifier, {Topic.SHOTS})

    def get_shots_by_club(self, club_id: str) -> SnapshotStream:
        async def load() -> List[Shot]:
            return [s for s in await self._load_shots() if s.club.id == club_id]

        return SnapshotStream(load, self.notifier, {Topic.SHOTS})

    def get_shots_with_pressure(self) -> SnapshotStream:
        async def load() -> List[Shot]:
            return [s for s in await self._load_shots() if s.pressure_context.has_pressure]

        return SnapshotStream(load, self.notifier, {Topic.SHOTS})

    async def enforce_retention_policy(self) -> int:
        cutoff = utcnow() - timedelta(days=self.retention_days)
        stale = [shot.id for shot in await self._load_shots() if shot.timestamp < cutoff]
        if not stale:
            return 0
        removed = await self.client.hdel(self.shots_key, *stale)
        self.notifier.notify(Topic.SHOTS)
        logger.info(f"Retention removed {removed} shots older than {self.retention_days} days")
        return int(removed)

    # ------------------------------------------------------------------ #
    # Patterns
    # ------------------------------------------------------------------ #

    async def _load_patterns(self) -> List[MissPattern]:
        raw = await self.client.hgetall(self.patterns_key)
        return [MissPattern.from_dict(json.loads(value)) for value in raw.values()]

    def get_miss_patterns(self) -> SnapshotStream:
        return SnapshotStream(self._load_patterns, self.notifier, {Topic.PATTERNS})

    def get_patterns_by_club(self, club_id: str) -> SnapshotStream:
        async def load() -> List[MissPattern]:
            return [p for p in await self._load_patterns() if p.club is not None and p.club.id == club_id]

        return SnapshotStream(load, self.notifier, {Topic.PATTERNS})

    async def update_pattern(self, pattern: MissPattern) -> None:
        await self.client.hset(self.patterns_key, pattern.id, json.dumps(pattern.to_dict()))
        self.notifier.notify(Topic.PATTERNS)

    async def delete_stale_patterns(self, cutoff: datetime) -> int:
        stale = [p.id for p in await self._load_patterns() if p.last_occurrence < cutoff]
        if not stale:
            return 0
        removed = await self.client.hdel(self.patterns_key, *stale)
        self.notifier.notify(Topic.PATTERNS)
        return int(removed)

    # ------------------------------------------------------------------ #
    # Session
    # ------------------------------------------------------------------ #

    async def _load_session(self) -> SessionContext:
        raw_session = await self.client.get(self.session_key)
        raw_turns = await self.client.lrange(self.turns_key, 0, -1)
        if raw_session:
            context = SessionContext.from_dict(json.loads(raw_session))
        else:
            context = SessionContext.empty(self._session_id)
        turns = tuple(ConversationTurn.from_dict(json.loads(t)) for t in raw_turns)
        return SessionContext(
            session_id=context.session_id,
            current_round=context.current_round,
            current_hole=context.current_hole,
            last_shot=context.last_shot,
            last_recommendation=context.last_recommendation,
            conversation_history=turns[-MAX_CONVERSATION_TURNS:],
        )

    def get_session(self) -> SnapshotStream:
        return SnapshotStream(self._load_session, self.notifier, {Topic.SESSION})

    async def save_session(self, context: SessionContext) -> None:
        await self.client.set(self.session_key, json.dumps(context.without_history().to_dict()))
        self.notifier.notify(Topic.SESSION)

    async def add_conversation_turn(self, turn: ConversationTurn) -> None:
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.rpush(self.turns_key, json.dumps(turn.to_dict()))
            pipe.ltrim(self.turns_key, -MAX_CONVERSATION_TURNS, -1)
            await pipe.execute()
        self.notifier.notify(Topic.SESSION)

    async def clear_conversation_history(self) -> None:
        await self.client.delete(self.turns_key)
        self.notifier.notify(Topic.SESSION)

    async def clear_memory(self) -> None:
        """
        Delete shots, patterns, the session record and conversation turns.

        Every deletion is attempted even if an earlier one fails; the first
        failure is then re-raised unchanged. There is no all-or-nothing
        guarantee across the four keys.
        """
        first_error: Optional[BaseException] = None
        for key in (self.shots_key, self.patterns_key, self.session_key, self.turns_key):
            try:
                await self.client.delete(key)
            except Exception as e:
                logger.error(f" Failed to delete {key} during memory clear: {e}")
                if first_error is None:
                    first_error = e
        self.notifier.notify(Topic.SHOTS, Topic.PATTERNS, Topic.SESSION)
        if first_error is not None:
            raise first_error
        logger.info(" Memory cleared (shots, patterns, session, conversation)")
