"""
Pytest fixtures for memory tests.

Provides:
    - repository: InMemoryNavCaddyRepository
    - pattern_memory / session_manager / recorder wired to it
    - shot_factory: Shot builder with age, direction and pressure knobs
    - fake_redis: AsyncMock Redis client backed by plain dicts
"""

import pytest
from datetime import timedelta
from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

from navcaddy.memory.config import MemoryConfig
from navcaddy.memory.miss_patterns import MissPatternMemory
from navcaddy.memory.models import Club, ClubType, Lie, MissDirection, PressureContext, Shot, utcnow
from navcaddy.memory.recorder import ShotRecorder
from navcaddy.memory.repository import InMemoryNavCaddyRepository
from navcaddy.memory.session import SessionContextManager


@pytest.fixture
def memory_config():
    return MemoryConfig(decay_half_life_days=14.0, retention_days=90)


@pytest.fixture
def repository(memory_config):
    return InMemoryNavCaddyRepository(retention_days=memory_config.retention_days)


@pytest.fixture
def pattern_memory(repository, memory_config):
    return MissPatternMemory(repository, memory_config)


@pytest.fixture
def session_manager(repository):
    return SessionContextManager(repository)


@pytest.fixture
def recorder(repository, pattern_memory, session_manager):
    return ShotRecorder(repository, pattern_memory, session_manager)


@pytest.fixture
def seven_iron():
    return Club(id="7-iron", name="7-iron", type=ClubType.IRON, estimated_carry=150)


@pytest.fixture
def driver():
    return Club(id="driver", name="Driver", type=ClubType.DRIVER, estimated_carry=240)


@pytest.fixture
def shot_factory(seven_iron):
    def _make(
        direction=MissDirection.SLICE,
        days_ago: float = 0.0,
        pressure: bool = False,
        club=None,
        lie=Lie.FAIRWAY,
        now=None,
    ) -> Shot:
        return Shot(
            club=club or seven_iron,
            lie=lie,
            miss_direction=direction,
            pressure_context=PressureContext(is_user_tagged=pressure),
            timestamp=(now or utcnow()) - timedelta(days=days_ago),
        )

    return _make


# ============================================================================
# Fake Redis
# ============================================================================

def _redis_range(values: List[str], start: int, end: int) -> List[str]:
    """Inclusive Redis-style index range with negative indices."""
    n = len(values)
    if start < 0:
        start = max(n + start, 0)
    if end < 0:
        end = n + end
    if end < start:
        return []
    return values[start:end + 1]


class FakeRedisStore:
    """Dict-backed storage behind the mocked client."""

    def __init__(self):
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.strings: Dict[str, str] = {}
        self.lists: Dict[str, List[str]] = {}

    async def hset(self, key, field, value):
        self.hashes.setdefault(key, {})[field] = value
        return 1

    async def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    async def hdel(self, key, *fields):
        table = self.hashes.get(key, {})
        return sum(1 for f in fields if table.pop(f, None) is not None)

    async def get(self, key):
        return self.strings.get(key)

    async def set(self, key, value):
        self.strings[key] = value
        return True

    async def lrange(self, key, start, end):
        return _redis_range(self.lists.get(key, []), start, end)

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            for table in (self.hashes, self.strings, self.lists):
                if table.pop(key, None) is not None:
                    removed += 1
        return removed


class FakePipeline:
    """MULTI/EXEC pipeline supporting the list commands the repository queues."""

    def __init__(self, store: FakeRedisStore):
        self.store = store
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def rpush(self, key, *values):
        self.commands.append(("rpush", key, values))
        return self

    def ltrim(self, key, start, end):
        self.commands.append(("ltrim", key, (start, end)))
        return self

    async def execute(self):
        results = []
        for name, key, args in self.commands:
            values = self.store.lists.setdefault(key, [])
            if name == "rpush":
                values.extend(args)
                results.append(len(values))
            else:
                self.store.lists[key] = _redis_range(values, *args)
                results.append(True)
        self.commands = []
        return results


@pytest.fixture
def redis_store():
    return FakeRedisStore()


@pytest.fixture
def fake_redis(redis_store):
    """AsyncMock Redis client whose commands act on redis_store."""
    client = AsyncMock()
    for name in ("hset", "hgetall", "hdel", "get", "set", "lrange", "delete"):
        setattr(client, name, AsyncMock(side_effect=getattr(redis_store, name)))
    client.pipeline = MagicMock(side_effect=lambda transaction=True: FakePipeline(redis_store))
    client.ping = AsyncMock(return_value=True)
    return client


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (fake Redis backend, mocked Gemini)")
