"""Refresh token store — who owns each outstanding refresh token, and until when.

Learn: Refresh tokens are signed JWTs, but a signature alone can't be
revoked. Every issued refresh token is also recorded here, and the
refresh endpoint only honours tokens it can find. Logout deletes the
entry; expired entries are purged lazily when someone looks them up.

Two backends share one contract (put/get/revoke, single-key atomic):
- InMemoryRefreshTokenStore: a dict on the event loop. Fast, but every
  session is lost when the process restarts.
- RedisRefreshTokenStore: key = token, value = {ownerUserId, expiresAt},
  with a Redis TTL so stale keys disappear on their own.
"""

import abc
import asyncio
import json
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from snapcode.config import settings

logger = structlog.get_logger()

T = TypeVar("T")

KEY_PREFIX = "snapcode:refresh:"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoreUnavailableError(Exception):
    """The backing store timed out or could not be reached."""


@dataclass(frozen=True)
class RefreshTokenEntry:
    token: str
    owner_user_id: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class RefreshTokenStore(abc.ABC):
    """Mapping of refresh token string → owner and expiry."""

    @abc.abstractmethod
    async def put(self, token: str, owner_user_id: str, expires_at: datetime) -> None:
        """Insert or overwrite the entry for token."""

    @abc.abstractmethod
    async def get(self, token: str) -> Optional[RefreshTokenEntry]:
        """Return the entry for token, or None if unknown."""

    @abc.abstractmethod
    async def revoke(self, token: str) -> None:
        """Remove the entry for token. Absent tokens are a no-op."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """Process-local store. Each operation is one dict call, so atomic per key.

    Tokens nobody refreshes or logs out would otherwise stay forever, so
    every `sweep_every`-th put also drops all expired entries.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        sweep_every: int = 256,
    ):
        self._entries: dict[str, RefreshTokenEntry] = {}
        self.clock = clock
        self.sweep_every = sweep_every
        self._puts = 0

    async def put(self, token: str, owner_user_id: str, expires_at: datetime) -> None:
        self._entries[token] = RefreshTokenEntry(
            token=token,
            owner_user_id=str(owner_user_id),
            expires_at=expires_at,
        )
        self._puts += 1
        if self._puts % self.sweep_every == 0:
            self.purge_expired()

    async def get(self, token: str) -> Optional[RefreshTokenEntry]:
        return self._entries.get(token)

    async def revoke(self, token: str) -> None:
        self._entries.pop(token, None)

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self.clock()
        expired = [t for t, e in self._entries.items() if e.is_expired(now)]
        for token in expired:
            del self._entries[token]
        if expired:
            logger.debug("token_store.swept", removed=len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class RedisRefreshTokenStore(RefreshTokenStore):
    """Durable store on Redis, one key per token."""

    def __init__(
        self,
        redis: aioredis.Redis,
        timeout: Optional[float] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.redis = redis
        self.timeout = timeout if timeout is not None else settings.store_timeout_seconds
        self.clock = clock

    async def _call(self, awaitable: Awaitable[T], op: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, self.timeout)
        except asyncio.TimeoutError:
            logger.warning("token_store.timeout", op=op, timeout=self.timeout)
            raise StoreUnavailableError(f"Refresh token store timed out on {op}")
        except RedisError as e:
            logger.warning("token_store.unavailable", op=op, error=type(e).__name__)
            raise StoreUnavailableError(f"Refresh token store unavailable on {op}")

    async def put(self, token: str, owner_user_id: str, expires_at: datetime) -> None:
        remaining = (expires_at - self.clock()).total_seconds()
        value = json.dumps({
            "ownerUserId": str(owner_user_id),
            "expiresAt": expires_at.isoformat(),
        })
        await self._call(
            self.redis.set(KEY_PREFIX + token, value, ex=max(1, math.ceil(remaining))),
            "put",
        )

    async def get(self, token: str) -> Optional[RefreshTokenEntry]:
        raw = await self._call(self.redis.get(KEY_PREFIX + token), "get")
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            return RefreshTokenEntry(
                token=token,
                owner_user_id=data["ownerUserId"],
                expires_at=datetime.fromisoformat(data["expiresAt"]),
            )
        except (ValueError, KeyError, TypeError):
            # Unreadable entries can never validate; drop them.
            logger.warning("token_store.corrupt_entry")
            await self.revoke(token)
            return None

    async def revoke(self, token: str) -> None:
        await self._call(self.redis.delete(KEY_PREFIX + token), "revoke")


# ─── Process-wide instance ───────────────────────────────

_store: Optional[RefreshTokenStore] = None


def init_token_store(redis: Optional[aioredis.Redis] = None) -> RefreshTokenStore:
    """Build the configured store. Called from the app lifespan."""
    global _store
    if settings.refresh_token_store == "redis":
        if redis is None:
            raise RuntimeError(
                "SNAPCODE_REFRESH_TOKEN_STORE=redis requires a Redis connection"
            )
        _store = RedisRefreshTokenStore(redis)
    else:
        _store = InMemoryRefreshTokenStore()
    logger.info("token_store.initialized", backend=settings.refresh_token_store)
    return _store


def get_token_store() -> RefreshTokenStore:
    """FastAPI dependency — the shared refresh token store."""
    global _store
    if _store is None:
        if settings.refresh_token_store == "redis":
            raise RuntimeError("Token store not initialized. Call init_token_store() first.")
        _store = InMemoryRefreshTokenStore()
    return _store
