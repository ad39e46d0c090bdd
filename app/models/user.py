"""
SQLModel-based User models with inheritance for security

The inheritance structure is:

UserBase (shared public fields)
    ├─> Users (database table, adds credential fields)
    └─> UserResponse (credential-stripped projection, defined in app/schemas)

Credential fields (password hash, current refresh token) live only on the
table model, so any projection built from UserBase cannot leak them.
"""

from datetime import UTC, datetime

from sqlalchemy import Index
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UserBase(SQLModel):
    """
    Base model with shared public fields for Users.

    These fields are safe to expose via the API.
    """

    username: str = Field(max_length=50)
    email: str = Field(max_length=255)
    full_name: str = Field(max_length=100)

    # Media host URLs
    avatar: str = Field(max_length=512)
    cover_image: str | None = Field(default=None, max_length=512)


class Users(UserBase, table=True):
    """
    Database table for users.

    Extends UserBase with:
    - Primary key and timestamps
    - password: bcrypt hash, never plaintext
    - refresh_token: the single currently valid refresh token, or None
    """

    __tablename__ = "users"

    __table_args__ = (
        Index("idx_users_username", "username", unique=True),
        Index("idx_users_email", "email", unique=True),
    )

    id: int | None = Field(default=None, primary_key=True)

    password: str = Field(max_length=255)
    refresh_token: str | None = Field(default=None, max_length=1024)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column_kwargs={"onupdate": _utcnow},
    )
