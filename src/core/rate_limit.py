"""In-memory sliding window rate limiting for the API.

Limits are per client IP and per process; a multi-worker deployment gets one
window per worker. X-Forwarded-For is only read when the app runs behind a
trusted proxy.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from threading import Lock
from typing import Callable, ClassVar, Deque, Dict, Tuple

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from src.core.errors import ErrorDetail, ErrorEnvelope

logger = logging.getLogger(__name__)


class RateLimitMiddleware:
    EXEMPT_SUFFIXES: ClassVar[Tuple[str, ...]] = ("/health", "/healthz")

    def __init__(
        self,
        app: ASGIApp,
        limit: int = 100,
        window_seconds: int = 900,
        clock: Callable[[], float] = time.monotonic,
        trust_forwarded_for: bool = False,
    ) -> None:
        self.app = app
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self.trust_forwarded_for = trust_forwarded_for
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()
        self._lock = Lock()

    def _client_key(self, request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For") if self.trust_forwarded_for else None
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _check(self, key: str) -> Tuple[bool, int, int]:
        """Return (allowed, remaining, reset_in_seconds) and record the hit when allowed."""
        now = self.clock()
        window_start = now - self.window_seconds
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(window_start)
                self._last_sweep = now
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= window_start:
                hits.popleft()
            reset_in = int(hits[0] + self.window_seconds - now) + 1 if hits else self.window_seconds
            if len(hits) >= self.limit:
                return False, 0, reset_in
            hits.append(now)
            return True, self.limit - len(hits), reset_in

    def _sweep(self, window_start: float) -> None:
        """Drop clients whose last hit has left the window. Caller holds the lock."""
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in stale:
            del self._hits[key]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        if self.limit <= 0 or request.url.path.endswith(self.EXEMPT_SUFFIXES):
            await self.app(scope, receive, send)
            return

        key = self._client_key(request)
        allowed, remaining, reset_in = self._check(key)
        if not allowed:
            logger.warning("rate limit exceeded client=%s path=%s", key, request.url.path)
            envelope = ErrorEnvelope(
                error=ErrorDetail(code="rate_limited", message="Too many requests, try again later")
            )
            response = JSONResponse(
                status_code=429,
                content=envelope.model_dump(),
                headers={
                    "X-RateLimit-Limit": str(self.limit),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(reset_in),
                },
            )
            await response(scope, receive, send)
            return

        async def send_with_headers(message: dict) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.extend(
                    [
                        (b"x-ratelimit-limit", str(self.limit).encode()),
                        (b"x-ratelimit-remaining", str(remaining).encode()),
                    ]
                )
                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, send_with_headers)

