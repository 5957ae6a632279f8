"""
Session context manager.

Serializes read-modify-write updates of the player's session so concurrent
callers never overwrite each other's changes. Conversation turns go through
the repository's append-and-trim primitive.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Optional

from navcaddy.shared.errors import ValidationError
from navcaddy.shared.streams import SnapshotStream
from .models import MAX_HOLE, MIN_HOLE, ConversationTurn, Role, Round, SessionContext, Shot
from .repository import NavCaddyRepository

logger = logging.getLogger(__name__)


class SessionContextManager:
    def __init__(self, repository: NavCaddyRepository):
        self.repository = repository
        self._lock = asyncio.Lock()

    async def current(self) -> SessionContext:
        return await self.repository.get_session().first()

    def stream(self) -> SnapshotStream:
        return self.repository.get_session()

    async def _update(self, **changes) -> SessionContext:
        async with self._lock:
            context = replace(await self.current(), **changes)
            await self.repository.save_session(context)
        return context

    async def start_round(self, course_name: Optional[str] = None) -> SessionContext:
        logger.info(f" Round started{f' at {course_name}' if course_name else ''}")
        return await self._update(current_round=Round(course_name=course_name), current_hole=MIN_HOLE)

    async def update_round(self, current_round: Optional[Round]) -> SessionContext:
        return await self._update(current_round=current_round)

    async def end_round(self) -> SessionContext:
        return await self._update(current_round=None, current_hole=None)

    async def record_score(self, hole: int, strokes: int) -> SessionContext:
        async with self._lock:
            context = await self.current()
            if context.current_round is None:
                raise ValidationError("Cannot record a score without an active round")
            context = replace(context, current_round=context.current_round.with_score(hole, strokes))
            await self.repository.save_session(context)
        return context

    async def update_hole(self, hole: int) -> SessionContext:
        if not MIN_HOLE <= hole <= MAX_HOLE:
            raise ValidationError(f"hole must be between {MIN_HOLE} and {MAX_HOLE}, got {hole}")
        return await self._update(current_hole=hole)

    async def record_shot(self, shot: Shot) -> SessionContext:
        return await self._update(last_shot=shot)

    async def record_recommendation(self, recommendation: str) -> SessionContext:
        return await self._update(last_recommendation=recommendation)

    async def add_conversation_turn(self, turn: ConversationTurn) -> SessionContext:
        """Append a turn; the stored history keeps only the most recent turns."""
        async with self._lock:
            await self.repository.add_conversation_turn(turn)
            return await self.current()

    async def add_exchange(self, user_text: str, assistant_text: str) -> SessionContext:
        """Append a user turn and the assistant reply as one unit."""
        async with self._lock:
            await self.repository.add_conversation_turn(ConversationTurn(role=Role.USER, content=user_text))
            await self.repository.add_conversation_turn(
                ConversationTurn(role=Role.ASSISTANT, content=assistant_text)
            )
            return await self.current()

    async def clear(self) -> None:
        """Reset round state and conversation, keeping shot and pattern memory."""
        async with self._lock:
            context = await self.current()
            await self.repository.save_session(SessionContext.empty(context.session_id))
            await self.repository.clear_conversation_history()
