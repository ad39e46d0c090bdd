"""
SQLModel-based Subscription model.

A row records that ``subscriber_id`` follows the channel owned by
``channel_id``. Both columns reference users; a pair appears at most once.
"""

from datetime import UTC, datetime

from sqlalchemy import ForeignKeyConstraint, Index
from sqlmodel import Field, SQLModel


class Subscriptions(SQLModel, table=True):
    """Database table linking subscribers to channels."""

    __tablename__ = "subscriptions"

    __table_args__ = (
        ForeignKeyConstraint(
            ["subscriber_id"],
            ["users.id"],
            ondelete="CASCADE",
            name="fk_subscriptions_subscriber_id",
        ),
        ForeignKeyConstraint(
            ["channel_id"],
            ["users.id"],
            ondelete="CASCADE",
            name="fk_subscriptions_channel_id",
        ),
        Index("idx_subscriptions_pair", "subscriber_id", "channel_id", unique=True),
        Index("idx_subscriptions_channel_id", "channel_id"),
    )

    id: int | None = Field(default=None, primary_key=True)
    subscriber_id: int
    channel_id: int
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
