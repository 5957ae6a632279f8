"""
Tests for ChangeNotifier and SnapshotStream.
"""

import asyncio
import pytest

from navcaddy.shared.streams import SnapshotStream, Topic


class TestChangeNotifier:
    """Tests for signal fan-out."""

    def test_notify_reaches_matching_subscribers_only(self, notifier):
        shots_queue = notifier.subscribe({Topic.SHOTS})
        session_queue = notifier.subscribe({Topic.SESSION})

        notifier.notify(Topic.SHOTS)

        assert shots_queue.qsize() == 1
        assert session_queue.empty()

    def test_pending_signals_are_coalesced(self, notifier):
        queue = notifier.subscribe({Topic.SHOTS, Topic.PATTERNS})

        notifier.notify(Topic.SHOTS)
        notifier.notify(Topic.PATTERNS)
        notifier.notify(Topic.SHOTS)

        assert queue.qsize() == 1

    def test_unsubscribe(self, notifier):
        queue = notifier.subscribe({Topic.SHOTS})
        assert notifier.subscriber_count == 1

        notifier.unsubscribe(queue)
        notifier.notify(Topic.SHOTS)

        assert notifier.subscriber_count == 0
        assert queue.empty()


class TestSnapshotStream:
    """Tests for restartable snapshot streams."""

    @pytest.fixture
    def store(self):
        return {"value": 1}

    @pytest.fixture
    def stream(self, store, notifier):
        async def load():
            return store["value"]

        return SnapshotStream(load, notifier, {Topic.SHOTS})

    @pytest.mark.asyncio
    async def test_first_does_not_subscribe(self, stream, notifier):
        assert await stream.first() == 1
        assert notifier.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_iteration_emits_current_then_updates(self, stream, store, notifier):
        iterator = stream.__aiter__()

        assert await iterator.__anext__() == 1
        assert notifier.subscriber_count == 1

        store["value"] = 2
        notifier.notify(Topic.SHOTS)
        assert await asyncio.wait_for(iterator.__anext__(), timeout=1.0) == 2

        await iterator.aclose()
        assert notifier.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_stream_can_be_restarted(self, stream, store):
        async for value in stream:
            assert value == 1
            break

        store["value"] = 5
        async for value in stream:
            assert value == 5
            break

    @pytest.mark.asyncio
    async def test_map_applies_transform(self, stream, store, notifier):
        async def double(value):
            return value * 2

        doubled = stream.map(double)
        assert await doubled.first() == 2

        iterator = doubled.__aiter__()
        assert await iterator.__anext__() == 2
        store["value"] = 10
        notifier.notify(Topic.SHOTS)
        assert await asyncio.wait_for(iterator.__anext__(), timeout=1.0) == 20
        await iterator.aclose()
