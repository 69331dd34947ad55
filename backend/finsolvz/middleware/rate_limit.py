"""
Finsolvz Backend — Rate Limiting Middleware
============================================

What:  Per-client fixed-window admission control in front of every route.
Why:   Protects the API from abusive clients without requiring authentication.
How:   `FixedWindowRateLimiter` keeps a counter and window start per client;
       `RateLimitMiddleware` asks it for a decision on every request.

Algorithm: Fixed Window Counter
    1. Client key = first X-Forwarded-For entry, else the connection address
    2. If now - window_start > window: reset count and window_start
    3. Increment the count
    4. count > limit → 429, X-RateLimit-Remaining: 0, Retry-After: 60
       otherwise    → allow, X-RateLimit-Remaining: limit - count

    A fixed window admits bursts of up to 2×limit across a boundary. That is
    accepted; swap the algorithm rather than the constant if smoothing is
    ever needed.

Memory is bounded by a background sweep (once per minute) that drops clients
whose window has gone stale. The limiter instance is built by
`create_app()`, stored on `app.state.rate_limiter` and handed to the
middleware; its sweep task is owned by the lifespan.

Production Upgrade Path:
    State is per process. Multi-worker deployments need a shared counter
    (e.g. Redis INCR + EXPIRE) behind the same `hit()` interface.
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    started_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int


class FixedWindowRateLimiter:
    """
    Thread-safe fixed-window counter keyed by client.

    Args:
        limit:   Requests allowed per window
        window:  Window length in seconds (60 by default)
        clock:   Monotonic time source; injectable for tests
    """

    def __init__(
        self,
        limit: int,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window = window
        self._clock = clock
        self._clients: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    @property
    def retry_after(self) -> int:
        return int(self.window)

    def hit(self, client_key: str) -> RateLimitDecision:
        """Count one request for `client_key` and decide whether to admit it."""
        now = self._clock()
        with self._lock:
            state = self._clients.get(client_key)
            if state is None or now - state.started_at > self.window:
                state = _Window(count=0, started_at=now)
                self._clients[client_key] = state
            state.count += 1
            count = state.count

        if count > self.limit:
            return RateLimitDecision(False, self.limit, 0, self.retry_after)
        return RateLimitDecision(True, self.limit, self.limit - count, 0)

    def reset(self) -> None:
        with self._lock:
            self._clients.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def sweep(self) -> int:
        """Drop clients whose window has expired; returns how many were removed."""
        now = self._clock()
        with self._lock:
            stale = [key for key, state in self._clients.items() if now - state.started_at > self.window]
            for key in stale:
                del self._clients[key]
        if stale:
            logger.debug("Rate limiter sweep removed %d stale clients", len(stale))
        return len(stale)

    async def run_sweeper(self, interval: float = 60.0) -> None:
        while True:
            await asyncio.sleep(interval)
            self.sweep()


def client_key(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies a FixedWindowRateLimiter to every request except API docs.

    Response on rate limit:
        HTTP 429 with X-RateLimit-Limit, X-RateLimit-Remaining: 0 and
        Retry-After headers and a JSON body:
        {"error": "Rate limit exceeded",
         "message": "Too many requests, please try again later"}
    """

    EXCLUDED_PATHS = {"/docs", "/openapi.json", "/redoc"}

    def __init__(self, app: ASGIApp, limiter: Optional[FixedWindowRateLimiter] = None):
        super().__init__(app)
        if limiter is None:
            raise ValueError("RateLimitMiddleware requires a limiter instance")
        self.limiter = limiter

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        key = client_key(request)
        decision = self.limiter.hit(key)

        if not decision.allowed:
            logger.warning("Rate limit exceeded for %s (%d per window)", key, decision.limit)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Rate limit exceeded",
                    "message": "Too many requests, please try again later",
                },
                headers={
                    "X-RateLimit-Limit": str(decision.limit),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(decision.retry_after),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response
