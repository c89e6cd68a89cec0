"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.
"""

import asyncio
from typing import Awaitable, TypeVar

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from snapcode.config import settings
from snapcode.errors import ServiceUnavailableError

T = TypeVar("T")

# Connection pool: min 5, max 20 connections.
# echo=True in dev to see SQL queries.
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=5,
    max_overflow=15,
    pool_timeout=settings.db_timeout_seconds,
)

# Session factory: each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_models() -> None:
    """Create any missing tables."""
    from snapcode.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def bounded(awaitable: Awaitable[T], what: str = "database") -> T:
    """Await a persistence call under the configured timeout.

    A timeout, an unreachable server or a dropped connection is a
    transient outage (503), never a reason to treat the caller as
    unauthorized.
    """
    try:
        return await asyncio.wait_for(awaitable, settings.db_timeout_seconds)
    except asyncio.TimeoutError:
        raise ServiceUnavailableError(f"{what} lookup timed out")
    except (OperationalError, InterfaceError) as e:
        raise ServiceUnavailableError(f"{what} unavailable") from e
    except DBAPIError as e:
        if e.connection_invalidated:
            raise ServiceUnavailableError(f"{what} unavailable") from e
        raise
    except OSError as e:
        # asyncpg surfaces refused connects as bare OSError
        raise ServiceUnavailableError(f"{what} unavailable") from e
