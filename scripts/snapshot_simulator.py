from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

from market_breadth.breadth.engine import compute_breadth
from market_breadth.sources.memory import InMemoryRecordSource


def run(securities: int = 50, minutes: int = 10) -> None:
    """
    Generates fake snapshots for `securities` ids over `minutes` minutes and
    runs them through the breadth pipeline.

    - Each security gets one snapshot every 20 seconds.
    - LTP does a random walk around a fixed previous close.
    - About 1 in 100 snapshots carries a junk LTP, to show skipped counts.
    """
    source = InMemoryRecordSource()

    # Start at a minute boundary so buckets look clean.
    now = datetime.now(timezone.utc).replace(second=0, microsecond=0)
    start = now - timedelta(minutes=minutes)

    closes = {sid: round(random.uniform(50, 500), 2) for sid in range(1, securities + 1)}
    prices = dict(closes)

    ts = start
    while ts < now:
        for sid, close in closes.items():
            prices[sid] = round(prices[sid] * (1 + random.uniform(-0.004, 0.004)), 2)
            ltp = prices[sid] if random.random() > 0.01 else "N/A"
            source.insert(
                {
                    "security_id": sid,
                    "LTP": ltp,
                    "close": close,
                    "volume": random.randint(100, 50_000),
                    "timestamp": ts,
                }
            )
        ts += timedelta(seconds=20)

    print(f"Simulated {len(source.docs)} snapshots for {securities} securities...\n")

    series = compute_breadth(source, now=now, window_minutes=minutes + 1)
    for point in series.chart_data:
        print(
            f"[{point.time}] ADV={point.advances} DEC={point.declines} "
            f"UNCH={point.unchanged} SKIP={point.skipped}"
        )

    print("\nDone.")
    print(f"Current: {series.current.model_dump()}")


if __name__ == "__main__":
    run()
