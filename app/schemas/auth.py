"""
Authentication schemas for request/response validation.

This module defines Pydantic models for authentication-related API operations:
- Login credentials
- Token pairs
- Password change
"""

from pydantic import Field

from app.schemas.base import CamelModel
from app.schemas.user import UserResponse


class LoginRequest(CamelModel):
    """
    Request schema for user login.

    Either ``userName`` or ``email`` identifies the account.
    """

    username: str | None = Field(default=None, alias="userName", max_length=50)
    email: str | None = Field(default=None, max_length=255)
    password: str = Field(default="", max_length=255)


class RefreshRequest(CamelModel):
    """
    Request schema for token refresh (optional body for non-cookie flow).

    When using HTTPOnly cookies, the refresh token is sent automatically.
    """

    refresh_token: str | None = Field(
        default=None, description="Refresh token (optional if using cookies)"
    )


class TokenPair(CamelModel):
    """Freshly issued access and refresh tokens."""

    access_token: str
    refresh_token: str


class LoginResponse(TokenPair):
    """Login payload: the identity plus its tokens."""

    user: UserResponse


class PasswordChangeRequest(CamelModel):
    """Request schema for password change."""

    old_password: str = Field(default="", max_length=255)
    new_password: str = Field(default="", max_length=255)
