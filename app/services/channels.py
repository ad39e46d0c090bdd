"""
Channel profiles and subscriptions.

A channel is a user viewed publicly; its statistics come from the
``subscriptions`` table.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import BadRequestError, NotFoundError
from app.core.logging import get_logger
from app.models.subscription import Subscriptions
from app.models.user import Users
from app.schemas.user import ChannelProfile, ChannelSummary, SubscriptionStatus

logger = get_logger(__name__)


async def count_subscribers(db: AsyncSession, channel_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Subscriptions)
        .where(Subscriptions.channel_id == channel_id)  # type: ignore[arg-type]
    )
    return result.scalar() or 0


async def get_channel_profile(
    db: AsyncSession, username: str, viewer_id: int | None = None
) -> ChannelProfile:
    """
    Build the public profile of the channel owned by ``username``.

    ``is_subscribed`` is true only when ``viewer_id`` is among the channel's
    subscribers.

    Raises:
        BadRequestError: blank username
        NotFoundError: no such channel
    """
    if not username or not username.strip():
        raise BadRequestError("User name is missing")

    subscribers_count = (
        select(func.count())
        .select_from(Subscriptions)
        .where(Subscriptions.channel_id == Users.id)  # type: ignore[arg-type]
        .correlate(Users)
        .scalar_subquery()
    )
    subscribed_to_count = (
        select(func.count())
        .select_from(Subscriptions)
        .where(Subscriptions.subscriber_id == Users.id)  # type: ignore[arg-type]
        .correlate(Users)
        .scalar_subquery()
    )

    result = await db.execute(
        select(
            Users,
            subscribers_count.label("subscribers_count"),
            subscribed_to_count.label("subscribed_to_count"),
        ).where(Users.username == username.strip().lower())  # type: ignore[arg-type]
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Channel does not exist")

    channel, subscribers, subscribed_to = row

    is_subscribed = False
    if viewer_id is not None:
        subscribed = await db.execute(
            select(Subscriptions.id).where(
                Subscriptions.channel_id == channel.id,  # type: ignore[arg-type]
                Subscriptions.subscriber_id == viewer_id,  # type: ignore[arg-type]
            )
        )
        is_subscribed = subscribed.first() is not None

    return ChannelProfile(
        id=channel.id,
        username=channel.username,
        full_name=channel.full_name,
        email=channel.email,
        avatar=channel.avatar,
        cover_image=channel.cover_image,
        subscribers_count=subscribers,
        channels_subscribed_to_count=subscribed_to,
        is_subscribed=is_subscribed,
    )


async def _find_subscription(
    db: AsyncSession, subscriber_id: int, channel_id: int
) -> Subscriptions | None:
    result = await db.execute(
        select(Subscriptions).where(
            Subscriptions.channel_id == channel_id,  # type: ignore[arg-type]
            Subscriptions.subscriber_id == subscriber_id,  # type: ignore[arg-type]
        )
    )
    return result.scalar_one_or_none()


async def toggle_subscription(
    db: AsyncSession, subscriber_id: int, channel_id: int
) -> SubscriptionStatus:
    """
    Subscribe to a channel, or unsubscribe if already subscribed.

    When a concurrent request inserts the same subscription first, the
    result reports the subscription as active.

    Raises:
        BadRequestError: subscribing to one's own channel
        NotFoundError: no such channel
    """
    if subscriber_id == channel_id:
        raise BadRequestError("Cannot subscribe to your own channel")

    if await db.get(Users, channel_id) is None:
        raise NotFoundError("Channel does not exist")

    existing = await _find_subscription(db, subscriber_id, channel_id)

    if existing is not None:
        await db.execute(
            delete(Subscriptions).where(Subscriptions.id == existing.id)  # type: ignore[arg-type]
        )
        subscribed = False
        await db.commit()
    else:
        db.add(Subscriptions(subscriber_id=subscriber_id, channel_id=channel_id))
        subscribed = True
        try:
            await db.commit()
        except IntegrityError:
            # A concurrent request inserted the same pair first
            await db.rollback()
            logger.info(
                "subscription_already_exists",
                subscriber_id=subscriber_id,
                channel_id=channel_id,
            )

    logger.info(
        "subscription_toggled",
        subscriber_id=subscriber_id,
        channel_id=channel_id,
        subscribed=subscribed,
    )
    return SubscriptionStatus(
        channel_id=channel_id,
        subscribed=subscribed,
        subscribers_count=await count_subscribers(db, channel_id),
    )


async def list_subscribers(db: AsyncSession, channel_id: int) -> list[ChannelSummary]:
    """Users subscribed to ``channel_id``, oldest subscription first."""
    if await db.get(Users, channel_id) is None:
        raise NotFoundError("Channel does not exist")

    result = await db.execute(
        select(Users)
        .join(Subscriptions, Subscriptions.subscriber_id == Users.id)  # type: ignore[arg-type]
        .where(Subscriptions.channel_id == channel_id)  # type: ignore[arg-type]
        .order_by(Subscriptions.created_at, Subscriptions.id)  # type: ignore[arg-type]
    )
    return [ChannelSummary.model_validate(user) for user in result.scalars().all()]


async def list_subscribed_channels(db: AsyncSession, subscriber_id: int) -> list[ChannelSummary]:
    """Channels ``subscriber_id`` follows, oldest subscription first."""
    if await db.get(Users, subscriber_id) is None:
        raise NotFoundError("User not found")

    result = await db.execute(
        select(Users)
        .join(Subscriptions, Subscriptions.channel_id == Users.id)  # type: ignore[arg-type]
        .where(Subscriptions.subscriber_id == subscriber_id)  # type: ignore[arg-type]
        .order_by(Subscriptions.created_at, Subscriptions.id)  # type: ignore[arg-type]
    )
    return [ChannelSummary.model_validate(user) for user in result.scalars().all()]
