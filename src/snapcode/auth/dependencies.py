"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user from the request. The resolved identity
is passed down explicitly (handler argument → service call), never
stashed in global state.

Every failure looks the same to the client (401 "Unauthorized"); the
reason (missing, malformed, expired, user_not_found) only goes to the
log, and the raw token never does.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from snapcode.auth.jwt import (
    TokenExpiredError,
    TokenKind,
    TokenMalformedError,
    verify_token,
)
from snapcode.db.engine import bounded, get_db
from snapcode.db.models import User
from snapcode.errors import UnauthorizedError

logger = structlog.get_logger()


@dataclass(frozen=True)
class CurrentIdentity:
    """The authenticated user making the request.

    Built from the live User row, not from token claims, so profile
    fields are current and a deleted user can't get this far.
    """

    user_id: str
    email: str
    name: str
    avatar_url: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "CurrentIdentity":
        return cls(
            user_id=str(user.id),
            email=user.email,
            name=user.name,
            avatar_url=user.avatar_url,
        )


def _reject(reason: str, message: str = "Unauthorized") -> UnauthorizedError:
    logger.info("auth.rejected", reason=reason)
    return UnauthorizedError(message)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an `Authorization: Bearer <token>` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def authenticate(
    authorization: Optional[str], db: AsyncSession
) -> CurrentIdentity:
    """Verify the bearer access token and load its user."""
    token = extract_bearer_token(authorization)
    if token is None:
        raise _reject("missing")

    try:
        claims = verify_token(token, kind=TokenKind.ACCESS)
    except TokenExpiredError:
        raise _reject("expired")
    except TokenMalformedError as e:
        logger.debug("auth.malformed_detail", error=str(e))
        raise _reject("malformed")

    try:
        user_id = uuid.UUID(claims.subject)
    except ValueError:
        raise _reject("malformed")

    user = await bounded(db.get(User, user_id), "user")
    if user is None:
        raise _reject("user_not_found", "User not found")

    return CurrentIdentity.from_user(user)


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no valid token)."""
    return await authenticate(authorization, db)
