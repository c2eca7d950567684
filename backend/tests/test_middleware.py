"""
Shared Todo Backend — Middleware and Envelope Tests
====================================================

What:  Rate limiting, request ids, health/info endpoints and the error
       envelope for unknown routes.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from sharedtodo.middleware.logging import redact_path
from sharedtodo.middleware.rate_limit import RateLimitMiddleware, SlidingWindowLimiter
from sharedtodo.middleware.request_id import REQUEST_ID_HEADER

API = "/api/v1"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.parametrize(
    "path,logged",
    [
        ("/api/v1/invitations/eyJhbGciOiJIUzI1NiJ9.payload.sig", "/api/v1/invitations/eyJhbGci…"),
        ("/api/v1/invitations/eyJhbGciOiJIUzI1NiJ9.payload.sig/accept", "/api/v1/invitations/eyJhbGci…/accept"),
        ("/api/v1/notes/abc/invite", "/api/v1/notes/abc/invite"),
        ("/health", "/health"),
    ],
)
def test_redact_path(path, logged):
    assert redact_path(path) == logged


class TestSlidingWindowLimiter:

    def test_allows_up_to_limit_then_blocks(self):
        clock = FakeClock()
        limiter = SlidingWindowLimiter(max_requests=3, window_seconds=60, clock=clock)

        assert [limiter.hit("1.2.3.4") for _ in range(3)] == [None, None, None]
        assert limiter.hit("1.2.3.4") == 61

    def test_keys_are_independent(self):
        limiter = SlidingWindowLimiter(max_requests=1, window_seconds=60, clock=FakeClock())

        assert limiter.hit("a") is None
        assert limiter.hit("b") is None
        assert limiter.hit("a") is not None

    def test_window_slides(self):
        clock = FakeClock()
        limiter = SlidingWindowLimiter(max_requests=2, window_seconds=60, clock=clock)
        limiter.hit("ip")
        clock.now += 30
        limiter.hit("ip")

        clock.now += 20
        assert limiter.hit("ip") == 11

        clock.now += 11
        assert limiter.hit("ip") is None


def _limited_app(max_requests: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60, enabled=True)

    @app.get("/api/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


class TestRateLimitMiddleware:

    @pytest.mark.asyncio
    async def test_over_limit_returns_envelope(self):
        transport = ASGITransport(app=_limited_app(max_requests=2))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = [(await client.get("/api/ping")).status_code for _ in range(2)]
            blocked = await client.get("/api/ping")

        assert statuses == [200, 200]
        assert blocked.status_code == 429
        assert blocked.json()["success"] is False
        assert blocked.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert int(blocked.headers["Retry-After"]) >= 1

    @pytest.mark.asyncio
    async def test_non_api_paths_unlimited(self):
        transport = ASGITransport(app=_limited_app(max_requests=1))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = [(await client.get("/health")).status_code for _ in range(3)]

        assert statuses == [200, 200, 200]


class TestAppSurface:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_api_info(self, test_client):
        response = await test_client.get(API)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Shared Todo API"
        assert data["endpoints"]["notes"] == f"{API}/notes"

    @pytest.mark.asyncio
    async def test_unknown_route(self, test_client):
        response = await test_client.get(f"{API}/nope")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": {"code": "NOT_FOUND", "message": f"Route GET {API}/nope not found"},
        }

    @pytest.mark.asyncio
    async def test_request_id_generated_and_echoed(self, test_client):
        generated = await test_client.get("/health")
        echoed = await test_client.get("/health", headers={REQUEST_ID_HEADER: "abc123"})

        assert len(generated.headers[REQUEST_ID_HEADER]) == 8
        assert echoed.headers[REQUEST_ID_HEADER] == "abc123"
