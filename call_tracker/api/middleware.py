"""
API Middleware.

Request ID injection, rate limiting, and structured access logging
for every incoming request.
"""

from __future__ import annotations

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from call_tracker.config import get_settings
from call_tracker.logging_config import generate_trace_id, get_logger, trace_id_var

logger = get_logger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Inject a unique request ID into every request and response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID", generate_trace_id())
        trace_id_var.set(request_id)

        start = time.monotonic()

        response = await call_next(request)

        elapsed_ms = round((time.monotonic() - start) * 1000, 1)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = str(elapsed_ms)

        logger.info(
            "api_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            elapsed_ms=elapsed_ms,
            request_id=request_id,
        )

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window request limiter per client IP (single process only)."""

    def __init__(
        self,
        app: ASGIApp,
        max_requests: int | None = None,
        window_seconds: int | None = None,
    ) -> None:
        super().__init__(app)
        settings = get_settings()
        self.max_requests = max_requests or settings.rate_limit_max
        self.window_seconds = window_seconds or settings.rate_limit_window_seconds
        self._hits: dict[str, list[float]] = {}
        self._last_sweep = time.time()

    def _sweep(self, now: float) -> None:
        """Forget clients with no hits inside the current window."""
        stale = [ip for ip, hits in self._hits.items() if now - hits[-1] >= self.window_seconds]
        for ip in stale:
            del self._hits[ip]
        self._last_sweep = now

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        client_ip = request.client.host if request.client else "unknown"
        now = time.time()

        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)

        hits = [
            t for t in self._hits.get(client_ip, [])
            if now - t < self.window_seconds
        ]

        if len(hits) >= self.max_requests:
            self._hits[client_ip] = hits
            logger.warning("rate_limit_exceeded", client_ip=client_ip)
            return Response(
                content='{"detail": "Rate limit exceeded"}',
                status_code=429,
                media_type="application/json",
                headers={"Retry-After": str(self.window_seconds)},
            )

        hits.append(now)
        self._hits[client_ip] = hits
        return await call_next(request)
