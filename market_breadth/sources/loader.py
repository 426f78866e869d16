from market_breadth.config import Settings
from market_breadth.sources.base import RecordSource
from market_breadth.sources.memory import InMemoryRecordSource
from market_breadth.sources.mongo import MongoRecordSource


def get_record_source(settings: Settings) -> RecordSource:
    """
    Record source loader / factory.

    Reads RECORD_SOURCE from config and returns an (unopened) instance of the
    selected source. This is the single place that knows about concrete sources.
    """
    source_name = settings.record_source.strip().upper()

    if source_name == "MONGO":
        return MongoRecordSource(
            uri=settings.mongo_uri,
            db_name=settings.mongo_db_name,
            collection=settings.mongo_collection,
            timeout_seconds=settings.fetch_timeout_seconds,
        )

    if source_name == "MEMORY":
        return InMemoryRecordSource()

    raise ValueError(f"Unknown RECORD_SOURCE='{settings.record_source}'. Expected: MONGO, MEMORY")
