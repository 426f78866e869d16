from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from market_breadth.errors import SourceUnavailable
from market_breadth.models.market import Snapshot, UniverseQuote
from market_breadth.sources.base import RecordSource
from market_breadth.sources.documents import (
    CLOSE,
    LTP,
    SECURITY_ID,
    TIMESTAMP,
    VOLUME,
    quote_from_doc,
    snapshot_from_doc,
)

log = logging.getLogger("mongo_source")

WINDOW_PROJECTION = {"_id": 0, LTP: 1, CLOSE: 1, TIMESTAMP: 1}


class MongoRecordSource(RecordSource):
    """
    MongoDB record source.

    One client per process, opened at startup and closed at shutdown by the
    app context. Every query carries max_time_ms from FETCH_TIMEOUT_SECONDS.
    """

    def __init__(
        self,
        uri: str,
        db_name: str,
        collection: str = "nse_equity",
        timeout_seconds: float = 10.0,
    ) -> None:
        self.uri = uri
        self.db_name = db_name
        self.collection_name = collection
        self.max_time_ms = max(1, int(timeout_seconds * 1000))
        self._client: Optional[MongoClient] = None

    def open(self) -> None:
        try:
            self._client = MongoClient(
                self.uri,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
                socketTimeoutMS=45000,
                retryWrites=True,
                retryReads=True,
            )
            self._client[self.db_name].command("ping")
            # Window queries filter and sort on timestamp.
            self._collection().create_index([(TIMESTAMP, ASCENDING)])
        except PyMongoError as e:
            self.close()
            raise SourceUnavailable(f"MongoDB connection failed: {e}") from e

        log.info("Connected to MongoDB db=%s collection=%s", self.db_name, self.collection_name)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _collection(self):
        if self._client is None:
            raise SourceUnavailable("Database not connected")
        return self._client[self.db_name][self.collection_name]

    def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            self._client[self.db_name].command("ping")
        except PyMongoError:
            return False
        return True

    def fetch_window(self, since: datetime) -> List[Snapshot]:
        try:
            cursor = (
                self._collection()
                .find({TIMESTAMP: {"$gte": since}}, projection=WINDOW_PROJECTION)
                .sort(TIMESTAMP, ASCENDING)
                .max_time_ms(self.max_time_ms)
            )
            docs = list(cursor)
        except PyMongoError as e:
            raise SourceUnavailable(f"Window query failed: {e}") from e

        out: List[Snapshot] = []
        bad = 0
        for doc in docs:
            try:
                out.append(snapshot_from_doc(doc))
            except (KeyError, TypeError, ValueError):
                bad += 1

        if bad:
            log.warning("Dropped %d documents with missing/invalid %s", bad, TIMESTAMP)
        return out

    def fetch_latest(self, security_ids: Sequence[int]) -> List[UniverseQuote]:
        ids = list(security_ids)
        if not ids:
            return []

        pipeline = [
            {"$match": {SECURITY_ID: {"$in": ids}}},
            {"$sort": {TIMESTAMP: DESCENDING}},
            {
                "$group": {
                    "_id": f"${SECURITY_ID}",
                    SECURITY_ID: {"$first": f"${SECURITY_ID}"},
                    LTP: {"$first": f"${LTP}"},
                    VOLUME: {"$first": f"${VOLUME}"},
                    CLOSE: {"$first": f"${CLOSE}"},
                }
            },
        ]

        try:
            docs = list(self._collection().aggregate(pipeline, maxTimeMS=self.max_time_ms))
        except PyMongoError as e:
            raise SourceUnavailable(f"Universe query failed: {e}") from e

        by_id = {doc.get(SECURITY_ID): doc for doc in docs}
        # $group output order is unspecified; report in allow-list order.
        return [quote_from_doc(by_id[sid]) for sid in ids if sid in by_id]
