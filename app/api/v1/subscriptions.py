"""
Subscription API endpoints.

- Toggle the current user's subscription to a channel
- List a channel's subscribers
- List the channels a user subscribes to
"""

from fastapi import APIRouter

from app.api.dependencies import DbSession
from app.core.auth import CurrentUser
from app.schemas.common import ApiResponse, api_response
from app.schemas.user import ChannelSummary, SubscriptionStatus
from app.services.channels import (
    list_subscribed_channels,
    list_subscribers,
    toggle_subscription,
)

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.post("/c/{channel_id}", response_model=ApiResponse[SubscriptionStatus])
async def toggle_channel_subscription(
    channel_id: int,
    current_user: CurrentUser,
    db: DbSession,
) -> ApiResponse[SubscriptionStatus]:
    """Subscribe to ``channel_id``, or unsubscribe if already subscribed."""
    result = await toggle_subscription(db, current_user.id, channel_id)
    message = "Subscribed successfully" if result.subscribed else "Unsubscribed successfully"
    return api_response(result, message)


@router.get("/c/{channel_id}", response_model=ApiResponse[list[ChannelSummary]])
async def get_channel_subscribers(
    channel_id: int,
    db: DbSession,
) -> ApiResponse[list[ChannelSummary]]:
    """List users subscribed to a channel."""
    subscribers = await list_subscribers(db, channel_id)
    return api_response(subscribers, "Subscribers fetched successfully")


@router.get("/u/{subscriber_id}", response_model=ApiResponse[list[ChannelSummary]])
async def get_subscribed_channels(
    subscriber_id: int,
    db: DbSession,
) -> ApiResponse[list[ChannelSummary]]:
    """List channels a user subscribes to."""
    channels = await list_subscribed_channels(db, subscriber_id)
    return api_response(channels, "Subscribed channels fetched successfully")
