"""
Pydantic schemas for User endpoints
"""

from pydantic import EmailStr, Field

from app.schemas.base import CamelModel, UTCDatetime, UTCDatetimeOptional


class UserResponse(CamelModel):
    """
    Credential-stripped projection of a user - what the API returns.

    Has no password or refresh_token field, so neither can be serialized.
    """

    id: int
    username: str = Field(alias="userName")
    email: str
    full_name: str
    avatar: str
    cover_image: str | None = None
    created_at: UTCDatetime
    updated_at: UTCDatetimeOptional = None


class UserUpdate(CamelModel):
    """Schema for updating account details."""

    full_name: str | None = None
    email: EmailStr | None = None


class ChannelSummary(CamelModel):
    """Minimal public channel information used in subscription lists."""

    id: int
    username: str = Field(alias="userName")
    full_name: str
    avatar: str


class ChannelProfile(CamelModel):
    """Public channel profile with subscription statistics."""

    id: int
    username: str = Field(alias="userName")
    full_name: str
    email: str
    avatar: str
    cover_image: str | None = None
    subscribers_count: int = 0
    channels_subscribed_to_count: int = 0
    is_subscribed: bool = False


class SubscriptionStatus(CamelModel):
    """Result of toggling a subscription."""

    channel_id: int
    subscribed: bool
    subscribers_count: int
