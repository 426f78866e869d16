from __future__ import annotations

from typing import List, Sequence

from market_breadth.models.market import UniverseQuote
from market_breadth.sources.base import RecordSource


def fetch_universe(source: RecordSource, security_ids: Sequence[int]) -> List[UniverseQuote]:
    """
    Latest quote for each security of the fixed universe.

    Direct passthrough of the source's records; no derived fields.
    """
    if not security_ids:
        return []
    return source.fetch_latest(security_ids)
