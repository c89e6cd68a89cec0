"""Session issuer — token pairs on login, access rotation, logout.

Learn: A "session" here is one outstanding refresh token. Its life:

    Issued → Active (found, now < expires_at)
           → Expired (found, now >= expires_at)   ┐ terminal, and callers
           → Revoked (removed by logout)          ┘ can't tell them apart

Rotation issues a new access token only. The refresh token is neither
replaced nor extended (no sliding expiry): it stays valid until its
original expiry or until it is revoked.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from snapcode.auth.identity import ExternalIdentity, IdentityResolver
from snapcode.auth.jwt import (
    TokenKind,
    create_access_token,
    create_refresh_token,
    token_lifetime,
)
from snapcode.auth.token_store import RefreshTokenStore
from snapcode.db.engine import bounded
from snapcode.db.models import User

logger = structlog.get_logger()


class InvalidOrExpiredRefreshTokenError(Exception):
    """Refresh token unknown, revoked, or past its expiry."""


class UserNotFoundError(Exception):
    """The refresh token's owner no longer exists."""


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionIssuer:
    """Orchestrates identity resolution, token creation and the token store."""

    def __init__(
        self,
        db: AsyncSession,
        store: RefreshTokenStore,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.store = store
        self.clock = clock
        self.identities = IdentityResolver(db)

    async def issue_session(self, identity: ExternalIdentity) -> TokenPair:
        """Resolve the user and hand out a fresh access/refresh pair."""
        user = await self.identities.resolve(identity)
        now = self.clock()
        subject = str(user.id)

        access_token = create_access_token(subject, user.email, now=now)
        refresh_token = create_refresh_token(subject, user.email, now=now)
        await self.store.put(
            refresh_token,
            subject,
            now + token_lifetime(TokenKind.REFRESH),
        )

        logger.info("session.issued", user_id=subject)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    async def rotate_access_token(self, refresh_token: str) -> str:
        """Exchange a live refresh token for a new access token."""
        entry = await self.store.get(refresh_token)
        if entry is None:
            raise InvalidOrExpiredRefreshTokenError("Invalid or expired refresh token")

        now = self.clock()
        if entry.is_expired(now):
            await self.store.revoke(refresh_token)
            logger.info("session.expired_purged", user_id=entry.owner_user_id)
            raise InvalidOrExpiredRefreshTokenError("Invalid or expired refresh token")

        try:
            owner_id = uuid.UUID(entry.owner_user_id)
        except ValueError:
            raise UserNotFoundError("User not found")
        user = await bounded(self.db.get(User, owner_id))
        if user is None:
            raise UserNotFoundError("User not found")

        return create_access_token(str(user.id), user.email, now=now)

    async def revoke_session(self, refresh_token: str) -> None:
        """Forget a refresh token. Unknown tokens are fine."""
        await self.store.revoke(refresh_token)
        logger.info("session.revoked")
