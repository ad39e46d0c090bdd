"""
Session lifecycle: login, logout, refresh-token rotation, password change.

Each user holds at most one valid refresh token, stored on the user row.
A presented refresh token is accepted only if it verifies against the
refresh secret AND equals the stored value, so overwriting or clearing the
stored value revokes every earlier token.
"""

import secrets

from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import (
    BadRequestError,
    InternalError,
    InvalidTokenError,
    NotFoundError,
    UnauthorizedError,
)
from app.core.logging import get_logger
from app.core.security import (
    create_access_token,
    create_refresh_token,
    validate_password_strength,
    verify_password,
    verify_refresh_token,
)
from app.models.user import Users
from app.services.users import UserStore

logger = get_logger(__name__)


class SessionManager:
    """Orchestrates credential checks and token issuance against a UserStore."""

    def __init__(self, store: UserStore) -> None:
        self.store = store

    async def issue_token_pair(self, user: Users) -> tuple[str, str]:
        """
        Mint an access/refresh pair and persist the refresh token.

        The refresh token column is the only field written.

        Returns:
            Tuple of (access_token, refresh_token)

        Raises:
            InternalError: the refresh token could not be persisted
        """
        if user.id is None:
            raise InternalError("User ID cannot be None")

        access_token = create_access_token(user.id)
        refresh_token = create_refresh_token(user.id)

        try:
            await self.store.patch(user, refresh_token=refresh_token)
        except SQLAlchemyError as e:
            logger.error("token_persist_failed", user_id=user.id, error=str(e))
            raise InternalError(
                "Something went wrong while generating access and refresh tokens"
            ) from e

        return access_token, refresh_token

    async def login(
        self,
        password: str,
        username: str | None = None,
        email: str | None = None,
    ) -> tuple[Users, str, str]:
        """
        Authenticate by username or email and start a session.

        Flow:
        1. Resolve the identifier to a user
        2. Verify the password against the stored bcrypt hash
        3. Issue a token pair, persisting the refresh token

        Returns:
            Tuple of (user, access_token, refresh_token)

        Raises:
            BadRequestError: neither username nor email given
            NotFoundError: no matching user
            UnauthorizedError: wrong password
        """
        if not ((username and username.strip()) or (email and email.strip())):
            raise BadRequestError("Username or email is required")

        user = await self.store.find_by_identifier(username=username, email=email)
        if user is None:
            raise NotFoundError("User does not exist")

        if not verify_password(password, user.password):
            logger.info("login_failed", user_id=user.id, reason="bad_password")
            raise UnauthorizedError("Invalid user credentials")

        access_token, refresh_token = await self.issue_token_pair(user)
        logger.info("user_logged_in", user_id=user.id)
        return user, access_token, refresh_token

    async def logout(self, user_id: int) -> None:
        """Clear the stored refresh token. Succeeds when none is stored."""
        user = await self.store.get(user_id)
        if user is not None and user.refresh_token is not None:
            await self.store.patch(user, refresh_token=None)
        logger.info("user_logged_out", user_id=user_id)

    async def refresh(self, presented_token: str | None) -> tuple[str, str]:
        """
        Rotate the session's token pair.

        Flow:
        1. Require a token
        2. Verify signature, expiry and token type
        3. Load the user named by the token
        4. Require the token to equal the stored refresh token
        5. Issue and persist a new pair, superseding the old token

        Returns:
            Tuple of (access_token, refresh_token)

        Raises:
            UnauthorizedError: token missing, superseded or revoked
            InvalidTokenError: token fails verification
            NotFoundError: the user no longer exists
        """
        if not presented_token:
            raise UnauthorizedError("Unauthorized request")

        try:
            claims = verify_refresh_token(presented_token)
        except InvalidTokenError as e:
            raise InvalidTokenError("Invalid refresh token") from e

        user = await self.store.get(claims.user_id)
        if user is None:
            raise NotFoundError("User not found")

        stored = user.refresh_token or ""
        if not secrets.compare_digest(presented_token.encode(), stored.encode()):
            logger.warning("refresh_token_reuse_rejected", user_id=user.id)
            raise UnauthorizedError("Refresh token is expired or used")

        access_token, refresh_token = await self.issue_token_pair(user)
        logger.info("session_refreshed", user_id=user.id)
        return access_token, refresh_token

    async def change_password(self, user_id: int, old_password: str, new_password: str) -> None:
        """
        Replace the password after verifying the current one.

        Raises:
            NotFoundError: the user no longer exists
            UnauthorizedError: old password is wrong
            BadRequestError: new password is too weak
        """
        user = await self.store.get(user_id)
        if user is None:
            raise NotFoundError("User not found")

        if not verify_password(old_password, user.password):
            raise UnauthorizedError("Incorrect password")

        is_valid, error_message = validate_password_strength(new_password)
        if not is_valid:
            raise BadRequestError(error_message)

        await self.store.set_password(user, new_password)
        logger.info("password_changed", user_id=user_id)
