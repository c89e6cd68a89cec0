"""Refresh token store tests — both backends honour the same contract.

Learn: The Redis backend is exercised against an AsyncMock client, so
these tests check what we send to Redis and how we read it back, and
how failures surface (StoreUnavailableError), without a live server.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from snapcode.auth.token_store import (
    KEY_PREFIX,
    InMemoryRefreshTokenStore,
    RedisRefreshTokenStore,
    RefreshTokenEntry,
    StoreUnavailableError,
)

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


# ═══════════════════════════════════════════════════════════
# Entries
# ═══════════════════════════════════════════════════════════


def test_entry_expiry_boundary():
    """An entry is expired from the instant now reaches expires_at."""
    entry = RefreshTokenEntry("t", "u", NOW)
    assert not entry.is_expired(NOW - timedelta(microseconds=1))
    assert entry.is_expired(NOW)
    assert entry.is_expired(NOW + timedelta(seconds=1))


# ═══════════════════════════════════════════════════════════
# In-memory backend
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_memory_put_get_revoke():
    store = InMemoryRefreshTokenStore()
    await store.put("tok", "user-1", NOW)

    entry = await store.get("tok")
    assert entry.owner_user_id == "user-1"
    assert entry.expires_at == NOW

    await store.revoke("tok")
    assert await store.get("tok") is None
    assert len(store) == 0


@pytest.mark.asyncio
async def test_memory_put_overwrites():
    store = InMemoryRefreshTokenStore()
    await store.put("tok", "user-1", NOW)
    await store.put("tok", "user-2", NOW + timedelta(days=1))
    entry = await store.get("tok")
    assert entry.owner_user_id == "user-2"
    assert len(store) == 1


@pytest.mark.asyncio
async def test_memory_revoke_unknown_is_noop():
    store = InMemoryRefreshTokenStore()
    await store.revoke("never-issued")
    assert len(store) == 0


@pytest.mark.asyncio
async def test_memory_sweeps_expired_on_put():
    """Abandoned tokens don't pile up forever."""
    store = InMemoryRefreshTokenStore(clock=lambda: NOW, sweep_every=2)
    await store.put("stale", "user-1", NOW - timedelta(seconds=1))
    assert len(store) == 1

    await store.put("fresh", "user-2", NOW + timedelta(days=7))

    assert await store.get("stale") is None
    assert (await store.get("fresh")).owner_user_id == "user-2"
    assert len(store) == 1


@pytest.mark.asyncio
async def test_memory_purge_expired_keeps_live_entries():
    store = InMemoryRefreshTokenStore(clock=lambda: NOW)
    await store.put("a", "user-1", NOW)
    await store.put("b", "user-1", NOW - timedelta(days=1))
    await store.put("c", "user-1", NOW + timedelta(seconds=1))

    assert store.purge_expired() == 2
    assert len(store) == 1
    assert await store.get("c") is not None


# ═══════════════════════════════════════════════════════════
# Redis backend
# ═══════════════════════════════════════════════════════════


def _redis_store(redis):
    return RedisRefreshTokenStore(redis, timeout=0.5, clock=lambda: NOW)


@pytest.mark.asyncio
async def test_redis_put_sets_value_with_ttl():
    redis = AsyncMock()
    store = _redis_store(redis)

    await store.put("tok", "user-1", NOW + timedelta(days=7))

    redis.set.assert_awaited_once()
    args, kwargs = redis.set.call_args
    assert args[0] == KEY_PREFIX + "tok"
    assert json.loads(args[1]) == {
        "ownerUserId": "user-1",
        "expiresAt": (NOW + timedelta(days=7)).isoformat(),
    }
    assert kwargs["ex"] == 7 * 24 * 3600


@pytest.mark.asyncio
async def test_redis_put_already_expired_keeps_minimum_ttl():
    redis = AsyncMock()
    await _redis_store(redis).put("tok", "user-1", NOW - timedelta(seconds=30))
    assert redis.set.call_args.kwargs["ex"] == 1


@pytest.mark.asyncio
async def test_redis_get_parses_entry():
    redis = AsyncMock()
    redis.get.return_value = json.dumps({
        "ownerUserId": "user-1",
        "expiresAt": NOW.isoformat(),
    })

    entry = await _redis_store(redis).get("tok")

    redis.get.assert_awaited_once_with(KEY_PREFIX + "tok")
    assert entry == RefreshTokenEntry("tok", "user-1", NOW)


@pytest.mark.asyncio
async def test_redis_get_missing():
    redis = AsyncMock()
    redis.get.return_value = None
    assert await _redis_store(redis).get("tok") is None


@pytest.mark.asyncio
async def test_redis_corrupt_entry_is_dropped():
    redis = AsyncMock()
    redis.get.return_value = "{not json"

    assert await _redis_store(redis).get("tok") is None
    redis.delete.assert_awaited_once_with(KEY_PREFIX + "tok")


@pytest.mark.asyncio
async def test_redis_revoke_deletes_key():
    redis = AsyncMock()
    await _redis_store(redis).revoke("tok")
    redis.delete.assert_awaited_once_with(KEY_PREFIX + "tok")


@pytest.mark.asyncio
async def test_redis_error_is_store_unavailable():
    redis = AsyncMock()
    redis.get.side_effect = RedisConnectionError("connection refused")
    with pytest.raises(StoreUnavailableError):
        await _redis_store(redis).get("tok")


@pytest.mark.asyncio
async def test_redis_timeout_is_store_unavailable():
    async def hang(*args, **kwargs):
        await asyncio.sleep(5)

    redis = AsyncMock()
    redis.set.side_effect = hang
    store = RedisRefreshTokenStore(redis, timeout=0.01, clock=lambda: NOW)

    with pytest.raises(StoreUnavailableError):
        await store.put("tok", "user-1", NOW + timedelta(days=1))
