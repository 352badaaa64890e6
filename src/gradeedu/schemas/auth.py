"""Pydantic schemas for authentication endpoints."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from gradeedu.schemas.common import CamelModel


class AuthStatus(StrEnum):
    """Authentication lifecycle state."""

    LOGGED_OUT = "logged_out"
    AUTHENTICATING = "authenticating"
    LOGGED_IN = "logged_in"


class User(CamelModel):
    """Profile snapshot returned by the backend."""

    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    username: str = Field(..., description="Login name")
    email: str = Field(..., description="Email address")
    created_at: datetime | None = Field(None, description="Account creation time")
    updated_at: datetime | None = Field(None, description="Last profile update")


class LoginRequest(BaseModel):
    """Credentials for POST /auth/login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """Profile for POST /auth/register."""

    name: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    """Response of login and register."""

    user: User
    token: str
    refresh_token: str


class TokenRefreshResponse(BaseModel):
    """Response of POST /auth/refresh; refresh_token is only sent when rotated."""

    token: str | None = None
    refresh_token: str | None = None


class Session(BaseModel):
    """Authenticated session: the token pair plus the cached user profile."""

    token: str
    refresh_token: str
    user: User
