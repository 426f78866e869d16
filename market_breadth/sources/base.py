from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Sequence

from market_breadth.models.market import Snapshot, UniverseQuote


class RecordSource(ABC):
    """
    Record source contract (interface).

    Any source must implement:
    - fetch_window(): snapshots observed at or after `since`, ascending by time
    - fetch_latest(): latest record per security id of a fixed set
    - ping(): cheap reachability check for /health

    Failures to reach or query the store are raised as SourceUnavailable.
    """

    def open(self) -> None:
        """Acquire connections. Called once at startup."""

    def close(self) -> None:
        """Release connections. Called once at shutdown."""

    @abstractmethod
    def ping(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def fetch_window(self, since: datetime) -> List[Snapshot]:
        raise NotImplementedError

    @abstractmethod
    def fetch_latest(self, security_ids: Sequence[int]) -> List[UniverseQuote]:
        raise NotImplementedError
