"""
Pytest fixtures for routing and pipeline tests.

Everything runs against the in-memory repository with an AsyncMock
classifier adapter; no network or Redis is required.
"""

import json
import pytest
from unittest.mock import AsyncMock

from navcaddy.intent.config import IntentConfig
from navcaddy.intent.connectivity import StaticConnectivityMonitor
from navcaddy.intent.intent_classifier import IntentClassifier
from navcaddy.intent.models import ClassifierResponse, ExtractedEntities, IntentType, ParsedIntent, Route
from navcaddy.intent.registry import get_schema
from navcaddy.memory.config import MemoryConfig
from navcaddy.memory.miss_patterns import MissPatternMemory
from navcaddy.memory.recorder import ShotRecorder
from navcaddy.memory.repository import InMemoryNavCaddyRepository
from navcaddy.memory.session import SessionContextManager
from navcaddy.routing.orchestrator import RoutingOrchestrator
from navcaddy.routing.pipeline import InputPipeline
from navcaddy.routing.prerequisites import Prerequisite, SessionPrerequisiteChecker, StaticPrerequisiteChecker


def classifier_response(intent_type: str, confidence: float, **entities) -> ClassifierResponse:
    payload = {"intent_type": intent_type, "confidence": confidence, "entities": entities}
    return ClassifierResponse(raw_response=json.dumps(payload), latency_ms=10.0, model_name="test-model")


def route_for(intent_type: IntentType, confidence: float = 0.9, **entities) -> Route:
    target = get_schema(intent_type).default_routing_target
    intent = ParsedIntent(
        intent_type=intent_type,
        confidence=confidence,
        entities=ExtractedEntities(**entities),
        routing_target=target,
    )
    return Route(intent=intent, target=target)


@pytest.fixture
def repository():
    return InMemoryNavCaddyRepository(retention_days=90)


@pytest.fixture
def session_manager(repository):
    return SessionContextManager(repository)


@pytest.fixture
def pattern_memory(repository):
    return MissPatternMemory(repository, MemoryConfig())


@pytest.fixture
def recorder(repository, pattern_memory, session_manager):
    return ShotRecorder(repository, pattern_memory, session_manager)


@pytest.fixture
def checker(session_manager):
    """Bag configured; round and course answered from the session."""
    return SessionPrerequisiteChecker(session_manager, StaticPrerequisiteChecker({Prerequisite.BAG_CONFIGURED}))


@pytest.fixture
def orchestrator(checker, pattern_memory):
    return RoutingOrchestrator(checker, pattern_memory)


@pytest.fixture
def adapter():
    adapter = AsyncMock()
    adapter.classify.return_value = classifier_response("CLUB_ADJUSTMENT", 0.92, club="7-iron")
    return adapter


@pytest.fixture
def connectivity():
    return StaticConnectivityMonitor()


@pytest.fixture
def classifier(adapter, connectivity):
    config = IntentConfig(
        gemini_api_key="test-key",
        classifier_timeout=0.1,
        max_retries=0,
        retry_base_delay=0.0,
        log_classifications=False,
    )
    return IntentClassifier(config, adapter=adapter, connectivity=connectivity)


@pytest.fixture
def pipeline(classifier, orchestrator, session_manager):
    return InputPipeline(classifier, orchestrator, session_manager)
