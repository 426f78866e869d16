from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from market_breadth.models.market import Snapshot, UniverseQuote

# Stored document field names.
SECURITY_ID = "security_id"
LTP = "LTP"
CLOSE = "close"
VOLUME = "volume"
TIMESTAMP = "timestamp"


def parse_ts(ts_raw: Any) -> datetime:
    """
    Converts a stored timestamp to datetime (UTC).
    Handles:
      - datetime (naive values are UTC, as the Mongo driver returns them)
      - epoch seconds/millis
      - ISO strings, with or without "Z"
    """
    if isinstance(ts_raw, datetime):
        dt = ts_raw
    elif isinstance(ts_raw, (int, float)) and not isinstance(ts_raw, bool):
        if ts_raw > 1_000_000_000_000:  # millis
            return datetime.fromtimestamp(ts_raw / 1000.0, tz=timezone.utc)
        return datetime.fromtimestamp(ts_raw, tz=timezone.utc)
    else:
        s = str(ts_raw).strip().replace(" ", "T")
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _security_id(raw: Any) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def snapshot_from_doc(doc: dict) -> Snapshot:
    """Raises KeyError/ValueError when the timestamp is missing or malformed."""
    return Snapshot(
        security_id=_security_id(doc.get(SECURITY_ID)),
        last_traded_price=doc.get(LTP),
        close_price=doc.get(CLOSE),
        observed_at=parse_ts(doc[TIMESTAMP]),
        volume=doc.get(VOLUME),
    )


def quote_from_doc(doc: dict) -> UniverseQuote:
    return UniverseQuote(
        security_id=_security_id(doc.get(SECURITY_ID)),
        last_traded_price=doc.get(LTP),
        volume=doc.get(VOLUME),
        close_price=doc.get(CLOSE),
    )
