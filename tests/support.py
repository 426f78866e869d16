from __future__ import annotations

from datetime import datetime, timezone

from market_breadth.config import DEFAULT_UNIVERSE_IDS, Settings
from market_breadth.models.market import Snapshot


def ts(hh: int, mm: int, ss: int = 0) -> datetime:
    return datetime(2024, 5, 6, hh, mm, ss, tzinfo=timezone.utc)


def snap(ltp, close, at: datetime, security_id: int = 1) -> Snapshot:
    return Snapshot(
        security_id=security_id,
        last_traded_price=ltp,
        close_price=close,
        observed_at=at,
    )


def make_settings(**overrides) -> Settings:
    base = dict(
        app_env="test",
        log_level="WARNING",
        host="127.0.0.1",
        port=8000,
        record_source="MEMORY",
        mongo_uri="",
        mongo_db_name="",
        mongo_collection="nse_equity",
        fetch_timeout_seconds=5.0,
        window_minutes=60,
        bucket_minutes=1,
        universe_ids=DEFAULT_UNIVERSE_IDS,
        allowed_origins=["http://localhost:5173"],
        rate_limit_enabled=False,
        rate_limit_max_requests=100,
        rate_limit_window_seconds=900,
        trust_forwarded_for=False,
    )
    base.update(overrides)
    return Settings(**base)
