"""Tests for security middleware — headers, request IDs.

Learn: Rate limiting is skipped when Redis isn't initialised, so
the limiter test swaps in a tiny counting fake.
"""

from types import SimpleNamespace

import pytest


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    """Health endpoint returns security headers."""
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "no-referrer"
    assert "Cache-Control" not in r.headers


@pytest.mark.asyncio
async def test_auth_routes_are_no_store(client):
    """Anything under /auth carries tokens and must not be cached."""
    r = await client.get("/api/v1/auth/me")
    assert r.status_code == 401
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/api/v1/health")
    r2 = await client.get("/api/v1/health")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    custom_id = "test-trace-12345"
    r = await client.get(
        "/api/v1/health",
        headers={"X-Request-ID": custom_id},
    )
    assert r.headers["X-Request-ID"] == custom_id


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on HTTP connections (only HTTPS)."""
    r = await client.get("/api/v1/health")
    assert "Strict-Transport-Security" not in r.headers


class CountingRedis:
    """Just enough of the Redis API for the rate limiter."""

    def __init__(self):
        self.counts: dict[str, int] = {}

    async def incr(self, key: str) -> int:
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def expire(self, key: str, seconds: int) -> None:
        pass


@pytest.mark.asyncio
async def test_auth_endpoints_rate_limited(client, monkeypatch):
    """Refresh attempts past the auth limit get a 429."""
    from snapcode.middleware import rate_limit

    fake = CountingRedis()
    monkeypatch.setattr(rate_limit, "get_redis", lambda: fake)
    # Pin the window so the loop can't straddle a minute boundary
    monkeypatch.setattr(rate_limit, "time", SimpleNamespace(time=lambda: 1_800_000_000.0))

    statuses = []
    for _ in range(12):
        r = await client.post("/api/v1/auth/refresh-token", json={"refreshToken": "x"})
        statuses.append(r.status_code)

    assert statuses[:10] == [401] * 10
    assert statuses[10:] == [429, 429]
    assert r.headers["Retry-After"] == "60"
