"""
Credential store for user records.

Two kinds of write path:
- ``create`` runs full validation (required fields, email format,
  username/email uniqueness) and hashes the password.
- ``patch`` / ``set_password`` update only the named columns and skip
  record validation; they back login, refresh, logout and profile edits.
"""

from typing import Any

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import BadRequestError, ConflictError
from app.core.logging import get_logger
from app.core.security import get_password_hash
from app.models.user import Users

logger = get_logger(__name__)

PATCHABLE_FIELDS = frozenset(
    {"full_name", "email", "avatar", "cover_image", "refresh_token"}
)


def normalize_email(email: str) -> str:
    """Validate email syntax and return its normalized, lower-cased form."""
    try:
        result = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise BadRequestError("Invalid email address") from e
    return result.normalized.lower()


class UserStore:
    """Reads and writes ``Users`` rows through an ``AsyncSession``."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, user_id: int) -> Users | None:
        return await self.db.get(Users, user_id)

    async def get_by_username(self, username: str) -> Users | None:
        result = await self.db.execute(
            select(Users).where(Users.username == username.strip().lower())  # type: ignore[arg-type]
        )
        return result.scalar_one_or_none()

    async def find_by_identifier(
        self, username: str | None = None, email: str | None = None
    ) -> Users | None:
        """Find a user by username or email, whichever is provided."""
        conditions = []
        if username and username.strip():
            conditions.append(Users.username == username.strip().lower())
        if email and email.strip():
            conditions.append(Users.email == email.strip().lower())
        if not conditions:
            return None

        result = await self.db.execute(select(Users).where(or_(*conditions)).limit(1))  # type: ignore[arg-type]
        return result.scalars().first()

    async def exists(self, username: str, email: str) -> bool:
        result = await self.db.execute(
            select(func.count())
            .select_from(Users)
            .where(or_(Users.username == username, Users.email == email))  # type: ignore[arg-type]
        )
        return (result.scalar() or 0) > 0

    async def email_taken_by_other(self, email: str, user_id: int) -> bool:
        result = await self.db.execute(
            select(func.count())
            .select_from(Users)
            .where(Users.email == email, Users.id != user_id)  # type: ignore[arg-type]
        )
        return (result.scalar() or 0) > 0

    async def ensure_available(self, username: str, email: str) -> tuple[str, str]:
        """
        Validate registration fields that can be checked before any upload.

        Returns:
            Normalized (username, email)

        Raises:
            BadRequestError: blank username or malformed email
            ConflictError: username or email already registered
        """
        if not username or not username.strip():
            raise BadRequestError("All fields are required")
        username = username.strip().lower()
        email = normalize_email(email)

        if await self.exists(username, email):
            raise ConflictError("User already exists")
        return username, email

    async def create(
        self,
        *,
        username: str,
        email: str,
        full_name: str,
        password: str,
        avatar: str,
        cover_image: str | None = None,
    ) -> Users:
        """
        Create a user with full validation.

        Raises:
            BadRequestError: any required field is blank or email is malformed
            ConflictError: username or email already registered
        """
        if any(not (value or "").strip() for value in (username, email, full_name, password)):
            raise BadRequestError("All fields are required")
        if not avatar:
            raise BadRequestError("Avatar file is required")

        username, email = await self.ensure_available(username, email)

        user = Users(
            username=username,
            email=email,
            full_name=full_name.strip(),
            password=get_password_hash(password),
            avatar=avatar,
            cover_image=cover_image or None,
        )
        self.db.add(user)
        # The unique indexes settle registrations racing past ensure_available
        await self._commit_unique("User already exists", username=username)
        await self.db.refresh(user)

        logger.info("user_created", user_id=user.id, username=user.username)
        return user

    async def _commit_unique(self, conflict_message: str, **log_context: Any) -> None:
        """
        Commit, turning a unique-index violation into a ConflictError.

        Raises:
            ConflictError: another row already holds the username or email
        """
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("user_unique_violation", error=str(e.orig), **log_context)
            raise ConflictError(conflict_message) from e

    async def patch(self, user: Users, **fields: Any) -> Users:
        """
        Overwrite the named columns without re-validating the record.

        Raises:
            ValueError: a field that cannot be patched was named
            ConflictError: the new email belongs to another user
        """
        unknown = set(fields) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot patch fields: {', '.join(sorted(unknown))}")

        user_id = user.id
        for name, value in fields.items():
            setattr(user, name, value)
        self.db.add(user)
        await self._commit_unique("Email is already in use", user_id=user_id)
        await self.db.refresh(user)
        return user

    async def set_password(self, user: Users, plain_password: str) -> Users:
        """Store a new password; hashing happens here, in the write path."""
        user.password = get_password_hash(plain_password)
        self.db.add(user)
        await self.db.commit()
        return user
