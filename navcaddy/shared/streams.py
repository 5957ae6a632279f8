"""
Push-based snapshot streams over mutable stores.

A store owns a ChangeNotifier and calls notify() after every committed
mutation. Readers obtain a SnapshotStream: iterating it subscribes, yields the
current snapshot immediately, then a fresh snapshot after each relevant
mutation. Every `async for` over the same stream is an independent
subscription, so streams can be restarted freely.

Usage:
    notifier = ChangeNotifier()
    stream = SnapshotStream(load_shots, notifier, {Topic.SHOTS})

    shots = await stream.first()          # one-shot read, no subscription
    async for shots in stream:            # live updates until the loop exits
        ...
"""

import asyncio
import logging
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, FrozenSet, Generic, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Topic(Enum):
    """Mutation channels a store can announce"""
    SHOTS = "shots"
    PATTERNS = "patterns"
    SESSION = "session"


class ChangeNotifier:
    """
    Fan-out of mutation signals to subscriber queues.

    Each subscriber queue holds at most one pending signal; further signals
    while one is pending are coalesced, since readers always reload the full
    snapshot anyway.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[asyncio.Queue, FrozenSet[Topic]] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, topics: Iterable[Topic]) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._subscribers[queue] = frozenset(topics)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.pop(queue, None)

    def notify(self, *topics: Topic) -> None:
        changed = set(topics)
        for queue, interests in list(self._subscribers.items()):
            matched = changed & interests
            if not matched:
                continue
            try:
                queue.put_nowait(next(iter(matched)))
            except asyncio.QueueFull:
                pass


class SnapshotStream(Generic[T]):
    """Restartable stream of snapshots produced by `loader`."""

    def __init__(
        self,
        loader: Callable[[], Awaitable[T]],
        notifier: ChangeNotifier,
        topics: Iterable[Topic],
    ):
        self._loader = loader
        self._notifier = notifier
        self._topics = frozenset(topics)

    async def first(self) -> T:
        """Current snapshot without subscribing."""
        return await self._loader()

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        # Subscribe before the initial load so no mutation falls in between
        queue = self._notifier.subscribe(self._topics)
        try:
            yield await self._loader()
            while True:
                await queue.get()
                yield await self._loader()
        finally:
            self._notifier.unsubscribe(queue)

    def map(self, transform: Callable[[T], Awaitable[Any]]) -> "SnapshotStream":
        """Derived stream applying an async transform to every snapshot."""
        loader = self._loader

        async def load_transformed():
            return await transform(await loader())

        return SnapshotStream(load_transformed, self._notifier, self._topics)
