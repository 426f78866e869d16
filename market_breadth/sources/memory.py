from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Sequence

from market_breadth.models.market import Snapshot, UniverseQuote
from market_breadth.sources.base import RecordSource
from market_breadth.sources.documents import parse_ts, quote_from_doc, snapshot_from_doc


@dataclass
class InMemoryRecordSource(RecordSource):
    """
    In-memory record source.

    docs holds raw documents shaped like the Mongo collection
    ({"security_id", "LTP", "close", "volume", "timestamp"}), in insertion
    order. Used for local runs (RECORD_SOURCE=MEMORY), the simulator and tests.
    """
    docs: List[dict] = field(default_factory=list)

    def insert(self, doc: dict) -> None:
        self.docs.append(dict(doc))

    def insert_many(self, docs: Sequence[dict]) -> None:
        for doc in docs:
            self.insert(doc)

    def ping(self) -> bool:
        return True

    def fetch_window(self, since: datetime) -> List[Snapshot]:
        lower = parse_ts(since)
        snaps = [snapshot_from_doc(d) for d in self.docs]
        snaps = [s for s in snaps if s.observed_at >= lower]
        # sorted() is stable: equal timestamps keep insertion order, like the store.
        return sorted(snaps, key=lambda s: s.observed_at)

    def fetch_latest(self, security_ids: Sequence[int]) -> List[UniverseQuote]:
        wanted = set(security_ids)
        latest: Dict[int, dict] = {}

        for doc in self.docs:
            sid = doc.get("security_id")
            if sid not in wanted:
                continue
            prev = latest.get(sid)
            if prev is None or parse_ts(doc["timestamp"]) >= parse_ts(prev["timestamp"]):
                latest[sid] = doc

        # Allow-list order, same as the Mongo source.
        return [quote_from_doc(latest[sid]) for sid in security_ids if sid in latest]
