"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
- Access token: proves identity on every API call; never stored server-side
- Refresh token: exchanged for new access tokens; also tracked in the
  refresh token store so it can be revoked

Both kinds carry the user id (sub) and email, and are signed with the
single shared secret. A random jti makes every issued token unique,
even two issued for the same user within the same second.
"""

import enum
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from snapcode.config import settings


class TokenKind(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenError(Exception):
    """Raised when token verification fails."""


class TokenExpiredError(TokenError):
    """The token was valid once but is past its exp claim."""


class TokenMalformedError(TokenError):
    """Bad signature, bad structure, missing claims, or wrong kind."""


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    email: str
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    token_id: str


def token_lifetime(kind: TokenKind) -> timedelta:
    """Fixed validity window for each token kind."""
    if kind is TokenKind.ACCESS:
        return timedelta(minutes=settings.access_token_expire_minutes)
    return timedelta(days=settings.refresh_token_expire_days)


def create_token(
    kind: TokenKind,
    subject: str,
    email: str,
    now: Optional[datetime] = None,
) -> str:
    """Create a signed token of the given kind."""
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "email": email,
        "type": kind.value,
        "iat": issued,
        "exp": issued + token_lifetime(kind),
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(subject: str, email: str, now: Optional[datetime] = None) -> str:
    """Create a JWT access token."""
    return create_token(TokenKind.ACCESS, subject, email, now=now)


def create_refresh_token(subject: str, email: str, now: Optional[datetime] = None) -> str:
    """Create a JWT refresh token."""
    return create_token(TokenKind.REFRESH, subject, email, now=now)


def verify_token(token: str, kind: Optional[TokenKind] = None) -> TokenClaims:
    """Verify and decode a JWT token.

    Returns the claims on success. Raises TokenExpiredError or
    TokenMalformedError so callers can log the two cases apart.
    If kind is given, a token of the other kind is rejected as malformed.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "iat", "type"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenMalformedError(f"Invalid token: {e}")

    try:
        token_kind = TokenKind(payload["type"])
    except ValueError:
        raise TokenMalformedError(f"Unknown token type: {payload['type']!r}")
    if kind is not None and token_kind is not kind:
        raise TokenMalformedError(f"Expected {kind.value} token, got {token_kind.value}")

    return TokenClaims(
        subject=str(payload["sub"]),
        email=str(payload.get("email", "")),
        kind=token_kind,
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        token_id=str(payload.get("jti", "")),
    )
