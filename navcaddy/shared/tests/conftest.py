"""
Pytest fixtures for shared module tests.
"""

import pytest
from unittest.mock import AsyncMock

from navcaddy.shared.streams import ChangeNotifier


@pytest.fixture
def mock_redis_client():
    """Create a mock Redis client."""
    client = AsyncMock()
    client.ping = AsyncMock(return_value=True)
    client.close = AsyncMock(return_value=None)
    return client


@pytest.fixture
def notifier():
    return ChangeNotifier()
