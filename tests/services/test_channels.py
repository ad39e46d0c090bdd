"""
Tests for channel profile aggregation and subscriptions.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import BadRequestError, NotFoundError
from app.models.user import Users
from app.services import channels as channel_service
from app.services.channels import (
    get_channel_profile,
    list_subscribed_channels,
    list_subscribers,
    toggle_subscription,
)
from app.services.users import UserStore


@pytest.fixture
async def carol(user_store: UserStore) -> Users:
    return await user_store.create(
        username="carol",
        email="c@x.com",
        full_name="Carol Example",
        password="secret123",
        avatar="https://media.example.com/carol.png",
    )


@pytest.mark.unit
class TestChannelProfile:
    async def test_profile_without_subscriptions(
        self, db_session: AsyncSession, test_user: Users
    ):
        profile = await get_channel_profile(db_session, "alice")

        assert profile.id == test_user.id
        assert profile.username == "alice"
        assert profile.full_name == "Alice Example"
        assert profile.subscribers_count == 0
        assert profile.channels_subscribed_to_count == 0
        assert profile.is_subscribed is False

    async def test_counts_and_is_subscribed(
        self,
        db_session: AsyncSession,
        test_user: Users,
        other_user: Users,
        carol: Users,
    ):
        # bob and carol subscribe to alice; alice subscribes to bob
        await toggle_subscription(db_session, other_user.id, test_user.id)
        await toggle_subscription(db_session, carol.id, test_user.id)
        await toggle_subscription(db_session, test_user.id, other_user.id)

        profile = await get_channel_profile(db_session, "ALICE", viewer_id=other_user.id)
        assert profile.subscribers_count == 2
        assert profile.channels_subscribed_to_count == 1
        assert profile.is_subscribed is True

        # alice follows bob but is not among her own subscribers
        own_view = await get_channel_profile(db_session, "alice", viewer_id=test_user.id)
        assert own_view.is_subscribed is False

        anonymous = await get_channel_profile(db_session, "alice")
        assert anonymous.is_subscribed is False

    async def test_unknown_channel(self, db_session: AsyncSession):
        with pytest.raises(NotFoundError, match="Channel does not exist"):
            await get_channel_profile(db_session, "nobody")

    async def test_blank_username(self, db_session: AsyncSession):
        with pytest.raises(BadRequestError, match="User name is missing"):
            await get_channel_profile(db_session, "  ")


@pytest.mark.unit
class TestSubscriptions:
    async def test_toggle_subscribes_then_unsubscribes(
        self, db_session: AsyncSession, test_user: Users, other_user: Users
    ):
        first = await toggle_subscription(db_session, test_user.id, other_user.id)
        assert first.subscribed is True
        assert first.subscribers_count == 1

        second = await toggle_subscription(db_session, test_user.id, other_user.id)
        assert second.subscribed is False
        assert second.subscribers_count == 0

    async def test_duplicate_insert_reports_subscribed(
        self,
        db_session: AsyncSession,
        test_user: Users,
        other_user: Users,
        monkeypatch: pytest.MonkeyPatch,
    ):
        subscriber_id, channel_id = test_user.id, other_user.id
        await toggle_subscription(db_session, subscriber_id, channel_id)

        # Another request inserted the pair between our lookup and our commit
        async def not_found_yet(*args, **kwargs):
            return None

        monkeypatch.setattr(channel_service, "_find_subscription", not_found_yet)

        result = await toggle_subscription(db_session, subscriber_id, channel_id)

        assert result.subscribed is True
        assert result.subscribers_count == 1

    async def test_cannot_subscribe_to_self(self, db_session: AsyncSession, test_user: Users):
        with pytest.raises(BadRequestError):
            await toggle_subscription(db_session, test_user.id, test_user.id)

    async def test_unknown_channel(self, db_session: AsyncSession, test_user: Users):
        with pytest.raises(NotFoundError):
            await toggle_subscription(db_session, test_user.id, 9999)

    async def test_lists(
        self, db_session: AsyncSession, test_user: Users, other_user: Users, carol: Users
    ):
        await toggle_subscription(db_session, other_user.id, test_user.id)
        await toggle_subscription(db_session, carol.id, test_user.id)

        subscribers = await list_subscribers(db_session, test_user.id)
        assert [s.username for s in subscribers] == ["bob", "carol"]

        channels = await list_subscribed_channels(db_session, carol.id)
        assert [c.id for c in channels] == [test_user.id]
