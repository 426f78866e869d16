from __future__ import annotations

import time
from dataclasses import dataclass, field

from market_breadth.config import Settings
from market_breadth.sources.base import RecordSource


@dataclass
class AppContext:
    """
    Per-process dependencies, built once by the app factory.

    The source is opened on startup and closed on shutdown; handlers only
    read from it.
    """
    settings: Settings
    source: RecordSource
    started_at: float = field(default_factory=time.monotonic)
    connected: bool = False

    def open(self) -> None:
        self.source.open()
        self.connected = True

    def close(self) -> None:
        self.connected = False
        self.source.close()

    def uptime(self) -> float:
        return time.monotonic() - self.started_at
