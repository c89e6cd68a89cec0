"""Shared Redis connection pool.

Learn: One pool per process, opened in the app lifespan. Two things
use it: the rate limiter (per-IP counters) and, when configured,
the durable refresh token store. Both keep working semantics without
Redis except the durable store, which refuses to start.
"""

from typing import Optional

import redis.asyncio as aioredis

from snapcode.config import settings

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    """Initialize the Redis connection pool."""
    global _redis
    _redis = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.store_timeout_seconds,
    )
    # Verify connection
    await _redis.ping()
    return _redis


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis
