"""
Tests for the session manager.

These cover the session lifecycle directly against the credential store:
- Login by username or email
- Refresh token persistence and rotation
- Replay of superseded tokens
- Logout revocation
- Password change
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    BadRequestError,
    InvalidTokenError,
    NotFoundError,
    UnauthorizedError,
)
from app.core.security import (
    create_refresh_token,
    verify_access_token,
    verify_password,
    verify_refresh_token,
)
from app.models.user import Users
from app.services.session import SessionManager
from app.services.users import UserStore

TEST_PASSWORD = "secret123"  # password of the test_user fixture


@pytest.fixture
def sessions(user_store: UserStore) -> SessionManager:
    return SessionManager(user_store)


@pytest.mark.unit
class TestLogin:
    async def test_login_by_username_issues_matching_tokens(
        self, sessions: SessionManager, test_user: Users
    ):
        user, access_token, refresh_token = await sessions.login(TEST_PASSWORD, username="alice")

        assert user.id == test_user.id
        assert verify_access_token(access_token).user_id == test_user.id
        assert verify_refresh_token(refresh_token).user_id == test_user.id

    async def test_login_by_email(self, sessions: SessionManager, test_user: Users):
        user, _, _ = await sessions.login(TEST_PASSWORD, email="A@X.com")
        assert user.id == test_user.id

    async def test_login_username_is_case_insensitive(
        self, sessions: SessionManager, test_user: Users
    ):
        user, _, _ = await sessions.login(TEST_PASSWORD, username="Alice")
        assert user.id == test_user.id

    async def test_login_persists_returned_refresh_token(
        self, sessions: SessionManager, test_user: Users, db_session: AsyncSession
    ):
        _, _, refresh_token = await sessions.login(TEST_PASSWORD, username="alice")

        await db_session.refresh(test_user)
        assert test_user.refresh_token == refresh_token

    async def test_login_requires_identifier(self, sessions: SessionManager):
        with pytest.raises(BadRequestError, match="Username or email is required"):
            await sessions.login(TEST_PASSWORD)

    async def test_login_unknown_user(self, sessions: SessionManager):
        with pytest.raises(NotFoundError):
            await sessions.login(TEST_PASSWORD, username="nobody")

    async def test_login_wrong_password(
        self, sessions: SessionManager, test_user: Users, db_session: AsyncSession
    ):
        with pytest.raises(UnauthorizedError, match="Invalid user credentials"):
            await sessions.login("wrong", username="alice")

        await db_session.refresh(test_user)
        assert test_user.refresh_token is None


@pytest.mark.unit
class TestRefresh:
    async def test_refresh_rotates_stored_token(
        self, sessions: SessionManager, test_user: Users, db_session: AsyncSession
    ):
        _, _, first = await sessions.login(TEST_PASSWORD, username="alice")

        access_token, second = await sessions.refresh(first)

        assert second != first
        assert verify_access_token(access_token).user_id == test_user.id
        await db_session.refresh(test_user)
        assert test_user.refresh_token == second

    async def test_replayed_token_rejected_after_rotation(
        self, sessions: SessionManager, test_user: Users
    ):
        _, _, first = await sessions.login(TEST_PASSWORD, username="alice")
        await sessions.refresh(first)

        with pytest.raises(UnauthorizedError, match="expired or used"):
            await sessions.refresh(first)

    async def test_new_token_still_works_after_replay_attempt(
        self, sessions: SessionManager, test_user: Users
    ):
        _, _, first = await sessions.login(TEST_PASSWORD, username="alice")
        _, second = await sessions.refresh(first)
        with pytest.raises(UnauthorizedError):
            await sessions.refresh(first)

        _, third = await sessions.refresh(second)
        assert third != second

    async def test_refresh_after_logout_rejected(
        self, sessions: SessionManager, test_user: Users
    ):
        _, _, refresh_token = await sessions.login(TEST_PASSWORD, username="alice")
        await sessions.logout(test_user.id)

        with pytest.raises(UnauthorizedError):
            await sessions.refresh(refresh_token)

    async def test_second_login_supersedes_first_session(
        self, sessions: SessionManager, test_user: Users
    ):
        _, _, first = await sessions.login(TEST_PASSWORD, username="alice")
        _, _, second = await sessions.login(TEST_PASSWORD, email="a@x.com")

        with pytest.raises(UnauthorizedError):
            await sessions.refresh(first)
        await sessions.refresh(second)

    async def test_missing_token(self, sessions: SessionManager):
        with pytest.raises(UnauthorizedError, match="Unauthorized request"):
            await sessions.refresh(None)

    async def test_malformed_token(self, sessions: SessionManager):
        with pytest.raises(InvalidTokenError):
            await sessions.refresh("garbage")

    async def test_token_for_deleted_user(self, sessions: SessionManager):
        with pytest.raises(NotFoundError):
            await sessions.refresh(create_refresh_token(9999))

    async def test_valid_signature_but_never_stored(
        self, sessions: SessionManager, test_user: Users
    ):
        await sessions.login(TEST_PASSWORD, username="alice")

        with pytest.raises(UnauthorizedError):
            await sessions.refresh(create_refresh_token(test_user.id))


@pytest.mark.unit
class TestLogout:
    async def test_logout_clears_token(
        self, sessions: SessionManager, test_user: Users, db_session: AsyncSession
    ):
        await sessions.login(TEST_PASSWORD, username="alice")
        await sessions.logout(test_user.id)

        await db_session.refresh(test_user)
        assert test_user.refresh_token is None

    async def test_logout_is_idempotent(self, sessions: SessionManager, test_user: Users):
        await sessions.logout(test_user.id)
        await sessions.logout(test_user.id)


@pytest.mark.unit
class TestChangePassword:
    async def test_change_password(
        self, sessions: SessionManager, test_user: Users, db_session: AsyncSession
    ):
        await sessions.change_password(test_user.id, TEST_PASSWORD, "n3w-password")

        await db_session.refresh(test_user)
        assert verify_password("n3w-password", test_user.password)
        assert test_user.password != "n3w-password"
        await sessions.login("n3w-password", username="alice")

    async def test_wrong_old_password(self, sessions: SessionManager, test_user: Users):
        with pytest.raises(UnauthorizedError, match="Incorrect password"):
            await sessions.change_password(test_user.id, "wrong", "n3w-password")

    async def test_weak_new_password(self, sessions: SessionManager, test_user: Users):
        with pytest.raises(BadRequestError):
            await sessions.change_password(test_user.id, TEST_PASSWORD, "abc")
