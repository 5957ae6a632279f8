"""
Pytest fixtures for intent classification tests.

The classifier adapter is an AsyncMock; tests set its return value with
`classifier_response(...)` or give it a side effect to simulate failures.
"""

import json
import pytest
from unittest.mock import AsyncMock

from navcaddy.intent.config import IntentConfig
from navcaddy.intent.connectivity import StaticConnectivityMonitor
from navcaddy.intent.intent_classifier import IntentClassifier
from navcaddy.intent.models import ClassifierResponse


def classifier_response(intent_type: str, confidence: float, **entities) -> ClassifierResponse:
    payload = {"intent_type": intent_type, "confidence": confidence, "entities": entities}
    return ClassifierResponse(raw_response=json.dumps(payload), latency_ms=25.0, model_name="test-model")


@pytest.fixture
def intent_config():
    """Fast-failing configuration for tests."""
    return IntentConfig(
        gemini_api_key="test-key",
        classifier_timeout=0.2,
        max_retries=1,
        retry_base_delay=0.0,
        log_classifications=False,
    )


@pytest.fixture
def adapter():
    adapter = AsyncMock()
    adapter.classify.return_value = classifier_response("CLUB_ADJUSTMENT", 0.92, club="7-iron")
    return adapter


@pytest.fixture
def connectivity():
    return StaticConnectivityMonitor(offline=False)


@pytest.fixture
def classifier(intent_config, adapter, connectivity):
    return IntentClassifier(intent_config, adapter=adapter, connectivity=connectivity)
