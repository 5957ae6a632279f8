"""
Network availability as seen by the intent pipeline.
"""

from typing import Protocol


class ConnectivityMonitor(Protocol):
    def is_offline(self) -> bool: ...

    def set_offline(self, offline: bool) -> None: ...


class StaticConnectivityMonitor:
    """Connectivity flag set by the host (tests, health probes, the app)."""

    def __init__(self, offline: bool = False):
        self.offline = offline

    def is_offline(self) -> bool:
        return self.offline

    def set_offline(self, offline: bool) -> None:
        self.offline = offline
