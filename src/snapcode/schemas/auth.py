"""Pydantic schemas for the auth endpoints."""

import uuid
from typing import Optional

from pydantic import Field

from snapcode.schemas.common import CamelModel


class RefreshRequest(CamelModel):
    # Optional so a missing token is a 400 with a clear message
    refresh_token: Optional[str] = None


class LogoutRequest(CamelModel):
    refresh_token: Optional[str] = None


class CodeExchangeRequest(CamelModel):
    code: str = Field(..., min_length=1)


class TokenPairResponse(CamelModel):
    access_token: str
    refresh_token: str


class AccessTokenResponse(CamelModel):
    access_token: str


class MeResponse(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    avatar: Optional[str] = None


class MessageResponse(CamelModel):
    message: str
