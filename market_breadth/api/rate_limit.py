from __future__ import annotations

import time
from threading import Lock
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse

# Beyond this many tracked clients, entries from old windows are dropped.
_MAX_TRACKED_KEYS = 8000


def client_ip(request: Request, trust_forwarded_for: bool = False) -> str:
    """X-Forwarded-For is only honoured behind a trusted proxy (TRUST_FORWARDED_FOR)."""
    if trust_forwarded_for:
        fwd = request.headers.get("x-forwarded-for", "").strip()
        if fwd:
            return fwd.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class FixedWindowRateLimiter:
    """
    Per-client request counter over fixed windows of `window_seconds`.

    check() returns (allowed, remaining, seconds_until_reset).
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock or time.time
        self._lock = Lock()
        self._state: Dict[str, Dict[str, int]] = {}

    def check(self, key: str) -> Tuple[bool, int, int]:
        now = self._clock()
        window = int(now // self.window_seconds)
        reset_in = int((window + 1) * self.window_seconds - now) or 1

        with self._lock:
            entry = self._state.get(key)
            if not entry or entry.get("window", -1) != window:
                entry = {"window": window, "count": 0}
                self._state[key] = entry

            count = entry["count"]
            if count >= self.max_requests:
                return False, 0, reset_in

            entry["count"] = count + 1
            remaining = max(0, self.max_requests - entry["count"])

            if len(self._state) > _MAX_TRACKED_KEYS:
                for k in list(self._state.keys()):
                    if self._state[k].get("window") != window:
                        self._state.pop(k, None)

            return True, remaining, reset_in


def rate_limit_middleware(
    limiter: FixedWindowRateLimiter,
    prefix: str = "/api",
    trust_forwarded_for: bool = False,
):
    """Builds an http middleware that limits requests under `prefix`."""

    async def middleware(request: Request, call_next):
        if not request.url.path.startswith(prefix):
            return await call_next(request)

        allowed, remaining, reset_in = limiter.check(client_ip(request, trust_forwarded_for))
        if not allowed:
            return JSONResponse(
                status_code=429,
                content={"error": "Too many requests"},
                headers={"Retry-After": str(reset_in)},
            )

        response = await call_next(request)
        response.headers["RateLimit-Limit"] = str(limiter.max_requests)
        response.headers["RateLimit-Remaining"] = str(remaining)
        response.headers["RateLimit-Reset"] = str(reset_in)
        return response

    return middleware
