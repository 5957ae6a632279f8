"""
Explicit construction of the NavCaddy service graph.

Nothing here is global: build_services() returns one NavCaddyServices bundle
that the host (the FastAPI app, a test) owns and closes.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import redis.asyncio as redis

from navcaddy.intent.config import IntentConfig
from navcaddy.intent.connectivity import ConnectivityMonitor, StaticConnectivityMonitor
from navcaddy.intent.gemini_client import ClassifierAdapter, GeminiClassifierAdapter
from navcaddy.intent.intent_classifier import IntentClassifier
from navcaddy.memory.config import MemoryConfig
from navcaddy.memory.miss_patterns import MissPatternMemory
from navcaddy.memory.recorder import ShotRecorder
from navcaddy.memory.redis_repository import RedisNavCaddyRepository
from navcaddy.memory.repository import InMemoryNavCaddyRepository, NavCaddyRepository
from navcaddy.memory.session import SessionContextManager
from navcaddy.routing.config import RoutingConfig
from navcaddy.routing.orchestrator import RoutingOrchestrator
from navcaddy.routing.pipeline import InputPipeline
from navcaddy.routing.prerequisites import (
    PrerequisiteChecker,
    SessionPrerequisiteChecker,
    StaticPrerequisiteChecker,
)
from navcaddy.shared.redis_client import RedisConfig, create_redis_client
from navcaddy.shared.streams import ChangeNotifier
from navcaddy.shared.structured_logger import StructuredLogger

logger = logging.getLogger(__name__)


@dataclass
class NavCaddyServices:
    intent_config: IntentConfig
    memory_config: MemoryConfig
    repository: NavCaddyRepository
    session_manager: SessionContextManager
    pattern_memory: MissPatternMemory
    recorder: ShotRecorder
    classifier: IntentClassifier
    orchestrator: RoutingOrchestrator
    pipeline: InputPipeline
    connectivity: ConnectivityMonitor
    backend: str = "memory"
    redis_client: Optional[redis.Redis] = None

    async def close(self) -> None:
        if self.redis_client is not None:
            client, self.redis_client = self.redis_client, None
            await client.close()
            # the pool is passed in explicitly, so redis-py leaves it open
            await client.connection_pool.disconnect()
            logger.info(" Redis connection closed")


def build_services(
    intent_config: Optional[IntentConfig] = None,
    memory_config: Optional[MemoryConfig] = None,
    routing_config: Optional[RoutingConfig] = None,
    repository: Optional[NavCaddyRepository] = None,
    adapter: Optional[ClassifierAdapter] = None,
    checker: Optional[PrerequisiteChecker] = None,
    connectivity: Optional[ConnectivityMonitor] = None,
    redis_client: Optional[redis.Redis] = None,
) -> NavCaddyServices:
    """
    Wire the service graph from its parts.

    Omitted parts get defaults: in-memory repository, a Gemini adapter when
    an API key is configured, and prerequisite checks answered from the
    session plus the configured static set.
    """
    intent_config = intent_config or IntentConfig()
    memory_config = memory_config or MemoryConfig()
    routing_config = routing_config or RoutingConfig()
    connectivity = connectivity or StaticConnectivityMonitor()
    structured_logger = StructuredLogger(logging.getLogger("navcaddy.pipeline"))

    if repository is None:
        repository = InMemoryNavCaddyRepository(retention_days=memory_config.retention_days)
    if adapter is None and intent_config.llm_enabled:
        adapter = GeminiClassifierAdapter(intent_config)

    session_manager = SessionContextManager(repository)
    pattern_memory = MissPatternMemory(repository, memory_config)
    recorder = ShotRecorder(repository, pattern_memory, session_manager)

    if checker is None:
        static = StaticPrerequisiteChecker(routing_config.satisfied_prerequisites)
        checker = SessionPrerequisiteChecker(session_manager, static) if routing_config.use_session_prerequisites else static

    classifier = IntentClassifier(
        intent_config,
        adapter=adapter,
        connectivity=connectivity,
        structured_logger=structured_logger,
    )
    orchestrator = RoutingOrchestrator(checker, pattern_memory)
    pipeline = InputPipeline(classifier, orchestrator, session_manager, structured_logger)

    return NavCaddyServices(
        intent_config=intent_config,
        memory_config=memory_config,
        repository=repository,
        session_manager=session_manager,
        pattern_memory=pattern_memory,
        recorder=recorder,
        classifier=classifier,
        orchestrator=orchestrator,
        pipeline=pipeline,
        connectivity=connectivity,
        backend="redis" if isinstance(repository, RedisNavCaddyRepository) else "memory",
        redis_client=redis_client,
    )


async def build_services_from_env() -> NavCaddyServices:
    """
    Build services from environment configuration.

    With NAVCADDY_MEMORY_BACKEND=redis an unreachable Redis falls back to the
    in-memory repository with a warning rather than failing startup.
    """
    intent_config = IntentConfig.from_env()
    memory_config = MemoryConfig.from_env()
    routing_config = RoutingConfig.from_env()

    repository: Optional[NavCaddyRepository] = None
    redis_client: Optional[redis.Redis] = None
    if memory_config.backend == "redis":
        try:
            redis_client = await create_redis_client(RedisConfig.from_env())
            repository = RedisNavCaddyRepository(
                redis_client,
                key_prefix=memory_config.redis_key_prefix,
                retention_days=memory_config.retention_days,
                notifier=ChangeNotifier(),
            )
        except Exception as e:
            logger.warning(f"️ Redis unavailable ({e}), falling back to in-memory storage")
            redis_client = None

    return build_services(
        intent_config=intent_config,
        memory_config=memory_config,
        routing_config=routing_config,
        repository=repository,
        redis_client=redis_client,
    )
