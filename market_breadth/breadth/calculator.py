from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from market_breadth.models.breadth import BreadthPoint
from market_breadth.models.market import Snapshot


def parse_price(value: Any) -> Optional[Decimal]:
    """
    Converts a stored price to Decimal.

    Handles:
      - Decimal / int
      - float (through str(), so 10.1 stays 10.1)
      - numeric strings ("10", " 10.00 ")
      - BSON Decimal128 (anything with to_decimal())

    Returns None for anything else, and for NaN / infinity.
    """
    if value is None or isinstance(value, bool):
        return None

    if hasattr(value, "to_decimal"):
        value = value.to_decimal()

    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        # Decimal() also accepts digit-group underscores ("1_000").
        if not text or "_" in text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not parsed.is_finite():
        return None
    return parsed


def classify(snapshot: Snapshot) -> str:
    """One of: "advance", "decline", "unchanged", "skipped"."""
    ltp = parse_price(snapshot.last_traded_price)
    close = parse_price(snapshot.close_price)

    if ltp is None or close is None:
        return "skipped"
    if ltp > close:
        return "advance"
    if ltp < close:
        return "decline"
    return "unchanged"


def calculate_point(label: str, snapshots: Iterable[Snapshot]) -> BreadthPoint:
    """Tally one bucket. Order of `snapshots` does not matter."""
    counts = {"advance": 0, "decline": 0, "unchanged": 0, "skipped": 0}

    for snap in snapshots:
        counts[classify(snap)] += 1

    return BreadthPoint(
        time=label,
        advances=counts["advance"],
        declines=counts["decline"],
        unchanged=counts["unchanged"],
        skipped=counts["skipped"],
    )
