from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from market_breadth.breadth.assembler import assemble_series
from market_breadth.breadth.bucketer import bucket_snapshots, max_window_minutes, to_utc
from market_breadth.breadth.calculator import calculate_point
from market_breadth.errors import EmptyResult
from market_breadth.models.breadth import BreadthSeries
from market_breadth.sources.base import RecordSource

log = logging.getLogger("breadth_engine")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def window_start(now: datetime, window_minutes: int) -> datetime:
    return to_utc(now) - timedelta(minutes=window_minutes)


def compute_breadth(
    source: RecordSource,
    now: Optional[datetime] = None,
    window_minutes: int = 60,
    bucket_minutes: int = 1,
) -> BreadthSeries:
    """
    Advance/decline series over the trailing window.

    Stages run in order: fetch -> bucket -> calculate -> assemble.
    `now` defaults to the current UTC time; pass it to pin the window.

    Raises:
      EmptyResult when the window holds no snapshots
      SourceUnavailable (from the source) when the store cannot be queried
      ValueError when the window is long enough for "HH:MM" labels to repeat
    """
    limit = max_window_minutes(bucket_minutes)
    if window_minutes > limit:
        raise ValueError(
            f"window_minutes={window_minutes} exceeds {limit} for bucket_minutes={bucket_minutes}"
        )

    since = window_start(now or utcnow(), window_minutes)

    snapshots = source.fetch_window(since)
    if not snapshots:
        raise EmptyResult()

    buckets = bucket_snapshots(snapshots, since=since, bucket_minutes=bucket_minutes)
    if not buckets:
        raise EmptyResult()

    points = [calculate_point(label, members) for label, members in buckets]

    skipped = sum(p.skipped for p in points)
    if skipped:
        log.warning(
            "Skipped %d snapshots with unparseable LTP/close across %d buckets",
            skipped,
            len(points),
        )

    series = assemble_series(points)
    log.info(
        "Breadth computed since=%s snapshots=%d buckets=%d current=%s",
        since.isoformat(),
        len(snapshots),
        len(points),
        series.current.model_dump(),
    )
    return series
