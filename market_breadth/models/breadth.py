from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class BreadthPoint(BaseModel):
    """
    Advance/decline tally for one time bucket.

    time:
      bucket label, "HH:MM" in UTC

    advances / declines:
      snapshots trading above / below their reference close

    unchanged / skipped:
      diagnostic counters (LTP == close, and unparseable prices).
      Neither contributes to advances or declines.
    """

    time: str
    advances: int = 0
    declines: int = 0
    unchanged: int = 0
    skipped: int = 0


class CurrentSummary(BaseModel):
    advances: int = 0
    declines: int = 0
    total: int = 0

    @classmethod
    def from_point(cls, point: BreadthPoint) -> "CurrentSummary":
        return cls(
            advances=point.advances,
            declines=point.declines,
            total=point.advances + point.declines,
        )


class BreadthSeries(BaseModel):
    """Assembled breadth result: the per-bucket series plus the latest bucket."""

    model_config = ConfigDict(populate_by_name=True)

    current: CurrentSummary
    chart_data: List[BreadthPoint] = Field(default_factory=list, alias="chartData")

    def to_response(self, diagnostics: bool = False) -> dict:
        fields = {"time", "advances", "declines"}
        if diagnostics:
            fields |= {"unchanged", "skipped"}

        return {
            "current": self.current.model_dump(),
            "chartData": [p.model_dump(include=fields) for p in self.chart_data],
        }
