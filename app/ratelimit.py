from __future__ import annotations

import math
import time
from collections.abc import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request counter per client address on ``/api/`` paths."""

    def __init__(
        self,
        app,
        *,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        # client -> (window start, count)
        self._windows: dict[str, tuple[float, int]] = {}
        self._next_prune = 0.0

    def _prune(self, now: float) -> None:
        # Runs at most once per window.
        if now < self._next_prune:
            return
        self._windows = {
            client: window
            for client, window in self._windows.items()
            if now - window[0] < self.window_seconds
        }
        self._next_prune = now + self.window_seconds

    def _hit(self, client: str) -> tuple[bool, int]:
        now = self._clock()
        self._prune(now)
        start, count = self._windows.get(client, (now, 0))
        if now - start >= self.window_seconds:
            start, count = now, 0
        count += 1
        self._windows[client] = (start, count)
        retry_after = max(1, math.ceil(self.window_seconds - (now - start)))
        return count <= self.max_requests, retry_after

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        allowed, retry_after = self._hit(client)
        if not allowed:
            return JSONResponse(
                status_code=429,
                content={"error": RATE_LIMIT_MESSAGE},
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
