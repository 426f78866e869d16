from __future__ import annotations

from typing import List

from market_breadth.models.breadth import BreadthPoint, BreadthSeries, CurrentSummary


def assemble_series(points: List[BreadthPoint]) -> BreadthSeries:
    """
    chart_data keeps bucket order; current is always the last point
    (zeros when there are no points).
    """
    chart_data = list(points)
    current = CurrentSummary.from_point(chart_data[-1]) if chart_data else CurrentSummary()
    return BreadthSeries(current=current, chart_data=chart_data)
