from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request

from market_breadth.breadth.engine import compute_breadth
from market_breadth.context import AppContext
from market_breadth.universe.filter import fetch_universe

log = logging.getLogger("api")

router = APIRouter(prefix="/api")


def get_context(request: Request) -> AppContext:
    return request.app.state.context


@router.get("/stocks")
def stocks(ctx: AppContext = Depends(get_context)):
    """
    Latest LTP / volume / close for the configured universe
    (UNIVERSE_SECURITY_IDS).
    """
    quotes = fetch_universe(ctx.source, ctx.settings.universe_ids)
    return [q.to_dict() for q in quotes]


@router.get("/advdec")
def advdec(
    diagnostics: bool = Query(False, description="Also report unchanged/skipped counts per bucket"),
    ctx: AppContext = Depends(get_context),
):
    """
    Advances vs declines per minute over the trailing window.

    - chartData: one point per bucket, oldest first
    - current: the latest bucket, with total = advances + declines
    - 404 when the window holds no snapshots
    """
    series = compute_breadth(
        ctx.source,
        window_minutes=ctx.settings.window_minutes,
        bucket_minutes=ctx.settings.bucket_minutes,
    )
    return series.to_response(diagnostics=diagnostics)
