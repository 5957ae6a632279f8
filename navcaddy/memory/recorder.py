"""
Shot recorder.

Persists shots, refreshes the miss patterns of the shot's club and keeps the
session's last shot current.
"""

import logging
import re
from typing import Optional

from navcaddy.shared.errors import ValidationError
from navcaddy.shared.streams import SnapshotStream
from .miss_patterns import MissPatternMemory
from .models import Club, ClubType, Lie, MissDirection, PressureContext, Shot, utcnow
from .repository import DEFAULT_RETENTION_DAYS, NavCaddyRepository
from .session import SessionContextManager

logger = logging.getLogger(__name__)

DEFAULT_CARRY_YARDS = {
    ClubType.DRIVER: 220,
    ClubType.WOOD: 190,
    ClubType.HYBRID: 170,
    ClubType.IRON: 140,
    ClubType.WEDGE: 100,
    ClubType.PUTTER: 0,
}

_WEDGE_ABBREVIATIONS = ("pw", "gw", "aw", "sw", "lw")


def infer_club_type(club_name: str) -> ClubType:
    """Best-effort club type from a free-form name such as "7-iron" or "3w"."""
    name = club_name.strip().lower()
    if "driver" in name or name == "1w":
        return ClubType.DRIVER
    if "wood" in name or re.fullmatch(r"\d+w", name):
        return ClubType.WOOD
    if "hybrid" in name or re.fullmatch(r"\d+h", name):
        return ClubType.HYBRID
    if "iron" in name or re.fullmatch(r"[3-9]i?", name):
        return ClubType.IRON
    if "wedge" in name or name in _WEDGE_ABBREVIATIONS:
        return ClubType.WEDGE
    if "putter" in name:
        return ClubType.PUTTER
    return ClubType.IRON


def club_id_for(club_name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", club_name.strip().lower()).strip("-")
    if not slug:
        raise ValidationError("club name must contain letters or digits")
    return slug


class ShotRecorder:
    def __init__(
        self,
        repository: NavCaddyRepository,
        pattern_memory: MissPatternMemory,
        session_manager: Optional[SessionContextManager] = None,
    ):
        self.repository = repository
        self.pattern_memory = pattern_memory
        self.session_manager = session_manager

    async def record(self, shot: Shot) -> Shot:
        """
        Persist `shot`, upsert its miss pattern and set it as the session's last shot.

        The three writes run as one unit with respect to clear_memory().
        """
        if shot.timestamp > utcnow():
            raise ValidationError(f"shot timestamp {shot.timestamp.isoformat()} is in the future")

        async with self.pattern_memory.gate.recording():
            await self.repository.record_shot(shot)
            await self.pattern_memory.upsert_for_shot(shot)
            if self.session_manager is not None:
                await self.session_manager.record_shot(shot)

        logger.info(
            f" Shot recorded: {shot.club.name} from {shot.lie.value.lower()}"
            f"{f', missed {shot.miss_direction.value.lower()}' if shot.is_miss else ''}"
            f"{' (pressure)' if shot.pressure_context.has_pressure else ''}"
        )
        return shot

    async def record_miss(
        self,
        club_name: str,
        direction: Optional[MissDirection],
        lie: Lie,
        pressure: Optional[PressureContext] = None,
        hole_number: Optional[int] = None,
        notes: Optional[str] = None,
        club_id: Optional[str] = None,
    ) -> Shot:
        """Convenience form building the Club from its name."""
        club_type = infer_club_type(club_name)
        club = Club(
            id=club_id or club_id_for(club_name),
            name=club_name.strip(),
            type=club_type,
            estimated_carry=DEFAULT_CARRY_YARDS[club_type],
        )
        shot = Shot(
            club=club,
            lie=lie,
            miss_direction=direction,
            pressure_context=pressure or PressureContext(),
            hole_number=hole_number,
            notes=notes,
        )
        return await self.record(shot)

    def get_recent_shots(self, days: int = DEFAULT_RETENTION_DAYS) -> SnapshotStream:
        return self.repository.get_recent_shots(days)

    def get_shots_by_club(self, club_id: str) -> SnapshotStream:
        return self.repository.get_shots_by_club(club_id)

    def get_shots_with_pressure(self) -> SnapshotStream:
        return self.repository.get_shots_with_pressure()

    async def enforce_retention_policy(self) -> int:
        return await self.repository.enforce_retention_policy()
