"""
Identity gate for FastAPI route protection.

``IdentityGate`` instances are built once, below, and referenced by the
routers through the ``CurrentUser`` / ``OptionalCurrentUser`` aliases.
The gate:
- Extracts the access token from the ``accessToken`` cookie, falling back
  to an ``Authorization: Bearer`` header
- Verifies it against the access-token secret
- Resolves it to a credential-stripped identity and stores that on
  ``request.state.user``
"""

from typing import Annotated

from fastapi import Cookie, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import CookieName
from app.core.database import get_db
from app.core.errors import InvalidTokenError, UnauthorizedError
from app.core.logging import get_logger, set_user_context
from app.core.security import verify_access_token
from app.schemas.auth import RefreshRequest
from app.schemas.user import UserResponse
from app.services.users import UserStore

logger = get_logger(__name__)

# Documents the Bearer scheme in OpenAPI; missing headers are handled by the gate
bearer_scheme = HTTPBearer(auto_error=False)


class IdentityGate:
    """
    Request-scoped guard resolving an access token to a user identity.

    Every failure (missing token, bad token, deleted user) raises the same
    ``UnauthorizedError`` so callers cannot tell which check failed. With
    ``optional=True`` the gate yields ``None`` instead of raising.
    """

    def __init__(self, optional: bool = False) -> None:
        self.optional = optional

    async def __call__(
        self,
        request: Request,
        db: Annotated[AsyncSession, Depends(get_db)],
        access_token: Annotated[str | None, Cookie(alias=CookieName.ACCESS_TOKEN)] = None,
        credentials: Annotated[
            HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
        ] = None,
    ) -> UserResponse | None:
        token = access_token or (credentials.credentials if credentials else None)
        if not token:
            return self._reject("Unauthorized request")

        try:
            claims = verify_access_token(token)
        except InvalidTokenError:
            return self._reject("Invalid access token")

        user = await UserStore(db).get(claims.user_id)
        if user is None:
            logger.info("identity_gate_unknown_user", token_user_id=claims.user_id)
            return self._reject("Invalid access token")

        identity = UserResponse.model_validate(user)
        request.state.user = identity
        set_user_context(identity.id)
        return identity

    def _reject(self, message: str) -> None:
        if self.optional:
            return None
        raise UnauthorizedError(message)


identity_gate = IdentityGate()
optional_identity_gate = IdentityGate(optional=True)

# Type aliases for dependency injection
CurrentUser = Annotated[UserResponse, Depends(identity_gate)]
OptionalCurrentUser = Annotated[UserResponse | None, Depends(optional_identity_gate)]


async def get_refresh_token(
    refresh_cookie: Annotated[str | None, Cookie(alias=CookieName.REFRESH_TOKEN)] = None,
    body: RefreshRequest | None = None,
) -> str | None:
    """Refresh token from the ``refreshToken`` cookie, else from the JSON body."""
    if refresh_cookie:
        return refresh_cookie
    return body.refresh_token if body else None


RefreshToken = Annotated[str | None, Depends(get_refresh_token)]
