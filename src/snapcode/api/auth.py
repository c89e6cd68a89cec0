"""Auth API — Google sign-in, token refresh, logout, current user.

Learn: Routes for the session lifecycle:
- GET  /auth/google             → redirect to Google's consent screen
- GET  /auth/google/callback    → code → user → tokens, redirect to the web client
- POST /auth/google/token       → same exchange, tokens returned as JSON
- POST /auth/refresh-token      → refresh token → new access token
- POST /auth/logout             → revoke a refresh token (always succeeds)
- GET  /auth/me                 → current user info

Component errors are translated here into the client-facing kinds.
Expired and revoked refresh tokens produce the same 401.
"""

import secrets
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Cookie, Depends, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from snapcode.auth.dependencies import CurrentIdentity, get_current_user
from snapcode.auth.google import (
    STATE_COOKIE,
    STATE_COOKIE_MAX_AGE,
    GoogleOAuthClient,
    OAuthExchangeError,
    get_oauth_client,
    new_state,
)
from snapcode.auth.identity import IdentityConflictError, IdentityResolutionError
from snapcode.auth.sessions import (
    InvalidOrExpiredRefreshTokenError,
    SessionIssuer,
    TokenPair,
    UserNotFoundError,
)
from snapcode.auth.token_store import (
    RefreshTokenStore,
    StoreUnavailableError,
    get_token_store,
)
from snapcode.config import settings
from snapcode.db.engine import get_db
from snapcode.errors import BadRequestError, ServiceUnavailableError, UnauthorizedError
from snapcode.schemas.auth import (
    AccessTokenResponse,
    CodeExchangeRequest,
    LogoutRequest,
    MeResponse,
    MessageResponse,
    RefreshRequest,
    TokenPairResponse,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


def _issuer(
    db: AsyncSession = Depends(get_db),
    store: RefreshTokenStore = Depends(get_token_store),
) -> SessionIssuer:
    return SessionIssuer(db, store)


async def _complete_handshake(
    code: str, oauth: GoogleOAuthClient, issuer: SessionIssuer
) -> TokenPair:
    """Shared tail of both handshake endpoints."""
    try:
        identity = await oauth.exchange_code(code)
        return await issuer.issue_session(identity)
    except OAuthExchangeError as e:
        logger.info("auth.handshake_failed", reason="oauth", error=str(e))
        raise UnauthorizedError("Authentication failed")
    except IdentityConflictError as e:
        logger.warning("auth.handshake_failed", reason="identity", error=str(e))
        raise UnauthorizedError("Authentication failed")
    except IdentityResolutionError as e:
        logger.warning("auth.handshake_failed", reason="storage", error=str(e))
        raise ServiceUnavailableError()
    except StoreUnavailableError:
        raise ServiceUnavailableError()


# ─── External handshake ─────────────────────────────────


@router.get("/google")
async def google_login(oauth: GoogleOAuthClient = Depends(get_oauth_client)):
    """Redirect to Google. The state round-trips through a cookie."""
    state = new_state()
    response = RedirectResponse(oauth.authorization_url(state), status_code=302)
    response.set_cookie(
        STATE_COOKIE,
        state,
        max_age=STATE_COOKIE_MAX_AGE,
        httponly=True,
        secure=not settings.is_development,
        samesite="lax",
    )
    return response


@router.get("/google/callback")
async def google_callback(
    code: str | None = Query(None),
    state: str | None = Query(None),
    state_cookie: str | None = Cookie(None, alias=STATE_COOKIE),
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
    issuer: SessionIssuer = Depends(_issuer),
):
    """Finish the handshake and hand the tokens to the web client."""
    if not code or not state or not state_cookie or not secrets.compare_digest(
        state, state_cookie
    ):
        logger.info("auth.handshake_failed", reason="state")
        raise UnauthorizedError("Authentication failed")

    tokens = await _complete_handshake(code, oauth, issuer)
    query = urlencode({
        "accessToken": tokens.access_token,
        "refreshToken": tokens.refresh_token,
    })
    response = RedirectResponse(
        f"{settings.client_url}/auth/callback?{query}", status_code=302
    )
    response.delete_cookie(STATE_COOKIE)
    return response


@router.post("/google/token", response_model=TokenPairResponse)
async def google_token(
    body: CodeExchangeRequest,
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
    issuer: SessionIssuer = Depends(_issuer),
):
    """Exchange a code obtained by the client itself for a token pair."""
    tokens = await _complete_handshake(body.code, oauth, issuer)
    return TokenPairResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh-token", response_model=AccessTokenResponse)
async def refresh(body: RefreshRequest, issuer: SessionIssuer = Depends(_issuer)):
    """Exchange a refresh token for a new access token."""
    if not body.refresh_token:
        raise BadRequestError("Refresh token is required")

    try:
        access_token = await issuer.rotate_access_token(body.refresh_token)
    except InvalidOrExpiredRefreshTokenError:
        logger.info("auth.refresh_rejected", reason="invalid_or_expired")
        raise UnauthorizedError("Invalid or expired refresh token")
    except UserNotFoundError:
        logger.info("auth.refresh_rejected", reason="user_not_found")
        raise UnauthorizedError("Unauthorized")
    except StoreUnavailableError:
        raise ServiceUnavailableError()

    return AccessTokenResponse(access_token=access_token)


# ─── Logout ─────────────────────────────────────────────


@router.post("/logout", response_model=MessageResponse)
async def logout(body: LogoutRequest, issuer: SessionIssuer = Depends(_issuer)):
    """Revoke the refresh token. Unknown or missing tokens still succeed."""
    if body.refresh_token:
        try:
            await issuer.revoke_session(body.refresh_token)
        except StoreUnavailableError:
            raise ServiceUnavailableError()
    return MessageResponse(message="Logged out successfully")


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=MeResponse)
async def get_me(identity: CurrentIdentity = Depends(get_current_user)):
    """Get the current authenticated user's info."""
    return MeResponse(
        id=identity.user_id,
        name=identity.name,
        email=identity.email,
        avatar=identity.avatar_url,
    )
