"""
User account API endpoints.

This module provides endpoints for:
- Registration with avatar/cover upload
- Login, logout and refresh-token rotation
- Password change and account details
- Avatar and cover image replacement
- Public channel profiles
"""

from typing import Annotated

from fastapi import APIRouter, File, Form, Response, UploadFile, status

from app.api.dependencies import DbSession, Sessions, Store, Uploader
from app.config import CookieName, settings
from app.core.auth import CurrentUser, OptionalCurrentUser, RefreshToken
from app.core.errors import BadRequestError, ConflictError, UnauthorizedError
from app.core.logging import get_logger
from app.models.user import Users
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    PasswordChangeRequest,
    TokenPair,
)
from app.schemas.common import ApiResponse, EmptyData, api_response
from app.schemas.user import ChannelProfile, UserResponse, UserUpdate
from app.services.channels import get_channel_profile
from app.services.media import MediaUploader, staged_upload
from app.services.users import UserStore, normalize_email

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """
    Set both tokens as HTTPOnly cookies.

    Args:
        response: FastAPI response object
        access_token: JWT access token
        refresh_token: JWT refresh token
    """
    response.set_cookie(
        key=CookieName.REFRESH_TOKEN,
        value=refresh_token,
        httponly=True,  # Prevent JavaScript access (XSS protection)
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,  # type: ignore[arg-type]
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )
    response.set_cookie(
        key=CookieName.ACCESS_TOKEN,
        value=access_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,  # type: ignore[arg-type]
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,  # Match JWT expiration
    )


def _clear_auth_cookies(response: Response) -> None:
    """Clear authentication cookies (params match set_cookie)."""
    for key in (CookieName.REFRESH_TOKEN, CookieName.ACCESS_TOKEN):
        response.delete_cookie(
            key=key,
            path="/",
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite=settings.COOKIE_SAMESITE,  # type: ignore[arg-type]
        )


async def _load_user(store: UserStore, current_user: UserResponse) -> Users:
    """Load the row behind the gate's identity (the user may have been deleted since)."""
    user = await store.get(current_user.id)
    if user is None:
        raise UnauthorizedError("Invalid access token")
    return user


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register_user(
    store: Store,
    uploader: Uploader,
    username: Annotated[str, Form(alias="userName")] = "",
    email: Annotated[str, Form()] = "",
    full_name: Annotated[str, Form(alias="fullName")] = "",
    password: Annotated[str, Form()] = "",
    avatar: Annotated[UploadFile | None, File()] = None,
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
) -> ApiResponse[UserResponse]:
    """
    Register a new user.

    Flow:
    1. Validate required fields and reject duplicate username/email (409)
    2. Stage the uploaded files locally
    3. Upload the avatar, then the optional cover image, to the media host
    4. Create the user only if the avatar upload produced a URL

    Staged files are removed on every path, and nothing is written to the
    database when the avatar upload fails.
    """
    if any(not field.strip() for field in (username, email, full_name, password)):
        raise BadRequestError("All fields are required")

    await store.ensure_available(username, email)

    async with staged_upload(avatar) as avatar_path, staged_upload(cover_image) as cover_path:
        if avatar_path is None:
            raise BadRequestError("Avatar file is required")

        avatar_url = await uploader.upload(avatar_path)
        if not avatar_url:
            raise BadRequestError("Avatar file is required")

        cover_url = await uploader.upload(cover_path)

    user = await store.create(
        username=username,
        email=email,
        full_name=full_name,
        password=password,
        avatar=avatar_url,
        cover_image=cover_url,
    )

    return api_response(
        UserResponse.model_validate(user),
        "User registered successfully",
        status.HTTP_201_CREATED,
    )


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login_user(
    credentials: LoginRequest,
    response: Response,
    sessions: Sessions,
) -> ApiResponse[LoginResponse]:
    """
    Authenticate with username or email plus password.

    Both tokens are set as HTTPOnly cookies and also returned in the body
    for clients that cannot use cookies.
    """
    user, access_token, refresh_token = await sessions.login(
        credentials.password,
        username=credentials.username,
        email=credentials.email,
    )

    _set_auth_cookies(response, access_token, refresh_token)

    return api_response(
        LoginResponse(
            user=UserResponse.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        ),
        "User logged in successfully",
    )


@router.post("/logout", response_model=ApiResponse[EmptyData])
async def logout_user(
    current_user: CurrentUser,
    response: Response,
    sessions: Sessions,
) -> ApiResponse[EmptyData]:
    """
    Logout by clearing the stored refresh token.

    Every refresh token issued so far stops working; the access token
    expires naturally.
    """
    await sessions.logout(current_user.id)
    _clear_auth_cookies(response)
    return api_response(EmptyData(), "User logged out")


@router.post("/refresh-token", response_model=ApiResponse[TokenPair])
async def refresh_access_token(
    response: Response,
    sessions: Sessions,
    presented: RefreshToken,
) -> ApiResponse[TokenPair]:
    """
    Rotate the token pair.

    The refresh token is read from the ``refreshToken`` cookie, or from the
    JSON body. The presented token is superseded by the new one.
    """
    access_token, refresh_token = await sessions.refresh(presented)

    _set_auth_cookies(response, access_token, refresh_token)

    return api_response(
        TokenPair(access_token=access_token, refresh_token=refresh_token),
        "Access token refreshed",
    )


@router.post("/change-password", response_model=ApiResponse[EmptyData])
async def change_current_password(
    request_data: PasswordChangeRequest,
    current_user: CurrentUser,
    sessions: Sessions,
) -> ApiResponse[EmptyData]:
    """Change the current user's password after verifying the old one."""
    await sessions.change_password(
        current_user.id, request_data.old_password, request_data.new_password
    )
    return api_response(EmptyData(), "Password changed successfully")


@router.get("/current-user", response_model=ApiResponse[UserResponse])
async def get_current_user(current_user: CurrentUser) -> ApiResponse[UserResponse]:
    """Return the identity resolved by the gate."""
    return api_response(current_user, "Current user fetched successfully")


@router.patch("/update-account", response_model=ApiResponse[UserResponse])
async def update_account_details(
    update_data: UserUpdate,
    current_user: CurrentUser,
    store: Store,
) -> ApiResponse[UserResponse]:
    """Update full name and email; both are required."""
    if not (update_data.full_name and update_data.full_name.strip()) or not update_data.email:
        raise BadRequestError("All fields are required")

    email = normalize_email(update_data.email)
    if await store.email_taken_by_other(email, current_user.id):
        raise ConflictError("Email is already in use")

    user = await _load_user(store, current_user)
    user = await store.patch(user, full_name=update_data.full_name.strip(), email=email)

    logger.info("account_updated", user_id=user.id)
    return api_response(UserResponse.model_validate(user), "Account details updated successfully")


async def _replace_media(
    file: UploadFile | None,
    field: str,
    label: str,
    current_user: UserResponse,
    store: UserStore,
    uploader: MediaUploader,
) -> Users:
    async with staged_upload(file) as local_path:
        if local_path is None:
            raise BadRequestError(f"{label} file is missing")
        url = await uploader.upload(local_path)

    if not url:
        raise BadRequestError(f"Error while updating {label.lower()}")

    user = await _load_user(store, current_user)
    return await store.patch(user, **{field: url})


@router.patch("/avatar", response_model=ApiResponse[UserResponse])
async def update_user_avatar(
    current_user: CurrentUser,
    store: Store,
    uploader: Uploader,
    avatar: Annotated[UploadFile | None, File()] = None,
) -> ApiResponse[UserResponse]:
    """Replace the current user's avatar."""
    user = await _replace_media(avatar, "avatar", "Avatar", current_user, store, uploader)
    return api_response(UserResponse.model_validate(user), "Avatar image updated successfully")


@router.patch("/cover-image", response_model=ApiResponse[UserResponse])
async def update_user_cover_image(
    current_user: CurrentUser,
    store: Store,
    uploader: Uploader,
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
) -> ApiResponse[UserResponse]:
    """Replace the current user's cover image."""
    user = await _replace_media(
        cover_image, "cover_image", "Cover image", current_user, store, uploader
    )
    return api_response(UserResponse.model_validate(user), "Cover image updated successfully")


@router.get("/c/{username}", response_model=ApiResponse[ChannelProfile])
async def get_user_channel_profile(
    username: str,
    db: DbSession,
    viewer: OptionalCurrentUser,
) -> ApiResponse[ChannelProfile]:
    """
    Public channel profile with subscriber statistics.

    Authentication is optional; when present, ``isSubscribed`` reports
    whether the caller subscribes to this channel.
    """
    profile = await get_channel_profile(db, username, viewer.id if viewer else None)
    return api_response(profile, "User channel fetched successfully")
