"""
Tests for the API middleware.
"""

import time
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI, Response
from httpx import AsyncClient, ASGITransport

from call_tracker.api.middleware import RateLimitMiddleware, RequestIdMiddleware


def _app(max_requests: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60)
    app.add_middleware(RequestIdMiddleware)

    @app.get("/ping")
    async def ping():
        return {"pong": True}

    return app


class TestRateLimitMiddleware:

    @pytest.mark.asyncio
    async def test_under_limit(self):
        transport = ASGITransport(app=_app(max_requests=3))
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            for _ in range(3):
                assert (await ac.get("/ping")).status_code == 200

    @pytest.mark.asyncio
    async def test_exceeding_limit_returns_429(self):
        transport = ASGITransport(app=_app(max_requests=2))
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            await ac.get("/ping")
            await ac.get("/ping")
            response = await ac.get("/ping")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json() == {"detail": "Rate limit exceeded"}

    @pytest.mark.asyncio
    async def test_idle_clients_are_forgotten(self):
        limiter = RateLimitMiddleware(FastAPI(), max_requests=5, window_seconds=60)

        async def call_next(request):
            return Response("ok")

        def request_from(ip: str) -> MagicMock:
            return MagicMock(client=MagicMock(host=ip))

        await limiter.dispatch(request_from("10.0.0.1"), call_next)
        assert "10.0.0.1" in limiter._hits

        # Age the first client's hits past the window
        limiter._hits["10.0.0.1"] = [time.time() - 120]
        limiter._last_sweep = time.time() - 120

        await limiter.dispatch(request_from("10.0.0.2"), call_next)
        assert "10.0.0.1" not in limiter._hits
        assert len(limiter._hits["10.0.0.2"]) == 1


class TestRequestIdMiddleware:

    @pytest.mark.asyncio
    async def test_generates_request_id(self):
        transport = ASGITransport(app=_app(max_requests=10))
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/ping")

        assert len(response.headers["X-Request-ID"]) == 12
        assert float(response.headers["X-Response-Time-Ms"]) >= 0
