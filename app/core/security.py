"""
Security utilities for authentication.

This module provides:
- Password hashing and verification using bcrypt
- Access and refresh JWT issuance, each class signed with its own secret
- Token verification shared by the identity gate and the session manager
"""

import base64
import hashlib
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

from app.config import TokenType, settings
from app.core.errors import InvalidTokenError

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of an access or refresh token."""

    user_id: int
    issued_at: datetime
    token_type: str


def validate_password_strength(password: str) -> tuple[bool, str | None]:
    """
    Validate a new password.

    Args:
        password: The password to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not password or not password.strip():
        return False, "Password is required"

    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

    return True, None


def _prepare_password_for_bcrypt(password: str) -> str:
    """
    Prepare password for bcrypt by handling long passwords.

    Bcrypt has a 72 byte limit. For passwords longer than 72 bytes,
    we SHA256 hash them first and encode as base64.
    """
    password_bytes = password.encode("utf-8")

    if len(password_bytes) <= 72:
        return password

    # SHA256 produces 32 bytes, base64 encoding produces 44 chars (well under 72)
    hashed = hashlib.sha256(password_bytes).digest()
    return base64.b64encode(hashed).decode("ascii")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a bcrypt hash.

    ``bcrypt.checkpw`` compares in constant time.
    """
    if not plain_password or not hashed_password:
        return False
    prepared_password = _prepare_password_for_bcrypt(plain_password)
    try:
        return bcrypt.checkpw(prepared_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    For passwords longer than 72 bytes (bcrypt's limit), we SHA256 hash them first.
    """
    prepared_password = _prepare_password_for_bcrypt(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(prepared_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def _encode_token(user_id: int, token_type: str, secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_delta,
        "type": token_type,
        # Two tokens minted in the same second must still differ
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(payload, secret, algorithm=settings.ALGORITHM)


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """
    Create a short-lived JWT access token.

    Args:
        user_id: The user ID to encode in the token
        expires_delta: Optional custom expiration (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode_token(user_id, TokenType.ACCESS, settings.ACCESS_TOKEN_SECRET, expires_delta)


def create_refresh_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """
    Create a long-lived JWT refresh token.

    Args:
        user_id: The user ID to encode in the token
        expires_delta: Optional custom expiration (defaults to REFRESH_TOKEN_EXPIRE_DAYS)

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode_token(user_id, TokenType.REFRESH, settings.REFRESH_TOKEN_SECRET, expires_delta)


def verify_token(token: str, secret: str, expected_type: str) -> TokenClaims:
    """
    Verify and decode a JWT.

    Args:
        token: The encoded JWT
        secret: Secret of the token class being verified
        expected_type: Required value of the ``type`` claim

    Returns:
        The verified claims

    Raises:
        InvalidTokenError: bad signature, expired, malformed payload or wrong type
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.ALGORITHM],
            options={
                "verify_exp": True,
                "verify_signature": True,
                "require": ["sub", "iat", "exp"],
            },
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError("Invalid token") from e

    if payload.get("type") != expected_type:
        raise InvalidTokenError("Invalid token type")

    try:
        user_id = int(payload["sub"])
    except (ValueError, TypeError) as e:
        raise InvalidTokenError("Invalid token subject") from e

    issued_at = datetime.fromtimestamp(payload["iat"], tz=UTC)
    return TokenClaims(user_id=user_id, issued_at=issued_at, token_type=expected_type)


def verify_access_token(token: str) -> TokenClaims:
    """Verify a token against the access-token secret."""
    return verify_token(token, settings.ACCESS_TOKEN_SECRET, TokenType.ACCESS)


def verify_refresh_token(token: str) -> TokenClaims:
    """Verify a token against the refresh-token secret."""
    return verify_token(token, settings.REFRESH_TOKEN_SECRET, TokenType.REFRESH)
