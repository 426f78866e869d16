from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class Snapshot:
    """
    Snapshot = one security's price observation at a point in time.

    security_id: numeric security identifier (None when not projected)
    last_traded_price: LTP as stored (number or text, parsed later)
    close_price: previous session close, same parsing rule as LTP
    observed_at: when the observation was taken (UTC-aware)
    volume: traded volume, only carried on the universe path
    """
    security_id: Optional[int]
    last_traded_price: Any
    close_price: Any
    observed_at: datetime
    volume: Any = None


@dataclass(frozen=True)
class UniverseQuote:
    """Latest record for one security of the fixed universe."""
    security_id: int
    last_traded_price: Any
    volume: Any
    close_price: Any

    def to_dict(self) -> dict:
        # Wire names match the stored document fields.
        return {
            "security_id": self.security_id,
            "LTP": self.last_traded_price,
            "volume": self.volume,
            "close": self.close_price,
        }
