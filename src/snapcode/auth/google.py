"""Google OAuth 2.0 handshake client.

Learn: Authorization-code flow, server side:
1. /auth/google redirects the browser to Google's consent screen with
   a random `state` (also set as a short-lived cookie).
2. Google redirects back to /auth/google/callback with `code` + `state`.
3. We POST the code to Google's token endpoint, then read the profile
   from the userinfo endpoint with the returned access token.

The result is a verified ExternalIdentity; everything after that
(find-or-create user, issue tokens) is provider-agnostic.
"""

import secrets
from urllib.parse import urlencode

import httpx
import structlog

from snapcode.auth.identity import ExternalIdentity
from snapcode.config import settings

logger = structlog.get_logger()

SCOPES = "openid email profile"
STATE_COOKIE = "snapcode_oauth_state"
STATE_COOKIE_MAX_AGE = 600


class OAuthExchangeError(Exception):
    """The provider rejected the code or returned an unusable profile."""


def new_state() -> str:
    return secrets.token_urlsafe(24)


class GoogleOAuthClient:
    """Talks to Google's OAuth endpoints."""

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        timeout: float | None = None,
    ):
        self.client_id = client_id or settings.google_client_id
        self.client_secret = client_secret or settings.google_client_secret
        self.redirect_uri = redirect_uri or settings.google_redirect_uri
        self.timeout = timeout or settings.oauth_timeout_seconds

    def authorization_url(self, state: str) -> str:
        query = urlencode({
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": SCOPES,
            "state": state,
            "prompt": "select_account",
        })
        return f"{settings.google_auth_url}?{query}"

    async def exchange_code(self, code: str) -> ExternalIdentity:
        """Trade an authorization code for the user's verified identity."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                token_resp = await client.post(
                    settings.google_token_url,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": self.redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                if token_resp.status_code != 200:
                    raise OAuthExchangeError(
                        f"Token endpoint returned {token_resp.status_code}"
                    )
                provider_token = token_resp.json().get("access_token")
                if not provider_token:
                    raise OAuthExchangeError("Token response had no access_token")

                profile_resp = await client.get(
                    settings.google_userinfo_url,
                    headers={"Authorization": f"Bearer {provider_token}"},
                )
                if profile_resp.status_code != 200:
                    raise OAuthExchangeError(
                        f"Userinfo endpoint returned {profile_resp.status_code}"
                    )
                profile = profile_resp.json()
        except httpx.HTTPError as e:
            logger.warning("oauth.transport_error", error=type(e).__name__)
            raise OAuthExchangeError("Could not reach identity provider") from e

        return identity_from_profile(profile)


def identity_from_profile(profile: dict) -> ExternalIdentity:
    """Map a Google userinfo payload onto an ExternalIdentity."""
    external_id = profile.get("sub")
    email = profile.get("email")
    if not external_id or not email:
        raise OAuthExchangeError("Profile is missing sub or email")
    if profile.get("email_verified") is False:
        raise OAuthExchangeError("Email address is not verified")
    return ExternalIdentity(
        external_id=str(external_id),
        email=email,
        display_name=profile.get("name") or email.split("@")[0],
        avatar_url=profile.get("picture"),
    )


def get_oauth_client() -> GoogleOAuthClient:
    """FastAPI dependency — overridden in tests."""
    return GoogleOAuthClient()
