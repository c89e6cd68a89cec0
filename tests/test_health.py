"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status and version."""
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_without_redis_is_healthy(client):
    """With the in-memory token store, Redis being absent is not fatal."""
    data = (await client.get("/api/v1/health")).json()
    assert data["redis"].startswith("error")
    assert data["status"] == "healthy"


@pytest.mark.asyncio
async def test_health_reports_redis_ok(client, monkeypatch):
    """A reachable Redis pool shows up as ok."""

    class PingableRedis:
        async def ping(self):
            return True

    monkeypatch.setattr("snapcode.api.health.get_redis", lambda: PingableRedis())
    data = (await client.get("/api/v1/health")).json()
    assert data["redis"] == "ok"
    assert data["status"] == "healthy"
