from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from market_breadth.models.market import Snapshot

Bucket = Tuple[str, List[Snapshot]]

MINUTES_PER_DAY = 24 * 60


def to_utc(ts: datetime) -> datetime:
    """Naive timestamps are taken to be UTC already (that is what the driver returns)."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def floor_to_minute(ts: datetime) -> datetime:
    """Round timestamp down to start of its minute (UTC)."""
    return to_utc(ts).replace(second=0, microsecond=0)


def floor_to_bucket(ts: datetime, bucket_minutes: int = 1) -> datetime:
    """Round timestamp down to the start of its bucket, counted from the epoch (UTC)."""
    ts = floor_to_minute(ts)
    if bucket_minutes == 1:
        return ts
    minutes = int(ts.timestamp()) // 60
    start = (minutes // bucket_minutes) * bucket_minutes
    return datetime.fromtimestamp(start * 60, tz=timezone.utc)


def max_window_minutes(bucket_minutes: int = 1) -> int:
    """Longest trailing window whose buckets never repeat an "HH:MM" label."""
    return MINUTES_PER_DAY - bucket_minutes


def bucket_label(ts: datetime, bucket_minutes: int = 1) -> str:
    return floor_to_bucket(ts, bucket_minutes).strftime("%H:%M")


def bucket_snapshots(
    snapshots: Iterable[Snapshot],
    since: Optional[datetime] = None,
    bucket_minutes: int = 1,
) -> List[Bucket]:
    """
    Group snapshots into fixed-width buckets labelled "HH:MM" (UTC).

    Returns an ordered list of (label, members) pairs. Buckets are keyed by
    their start time; a pair is appended the first time a start is seen, so
    label order is the ascending time order of each bucket's first snapshot.

    Labels carry no date, so the snapshots must span less than a day of
    buckets; two buckets sharing a label raise ValueError.

    Input is stable-sorted by observed_at first; the caller's order only
    survives among snapshots with identical timestamps.
    Snapshots older than `since` are dropped.
    """
    if bucket_minutes < 1:
        raise ValueError(f"bucket_minutes must be >= 1, got {bucket_minutes}")

    lower = to_utc(since) if since is not None else None

    ordered = sorted(snapshots, key=lambda s: to_utc(s.observed_at))

    buckets: List[Bucket] = []
    index: dict[datetime, int] = {}
    seen_labels: set[str] = set()

    for snap in ordered:
        if lower is not None and to_utc(snap.observed_at) < lower:
            continue

        start = floor_to_bucket(snap.observed_at, bucket_minutes)
        pos = index.get(start)
        if pos is None:
            label = start.strftime("%H:%M")
            if label in seen_labels:
                raise ValueError(
                    f"bucket label {label} repeats at {start.isoformat()}; "
                    "snapshots span a day or more"
                )
            seen_labels.add(label)
            index[start] = len(buckets)
            buckets.append((label, [snap]))
        else:
            buckets[pos][1].append(snap)

    return buckets
