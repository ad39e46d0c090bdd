"""
Shared dependencies for API endpoints.

Services are built per request around the request's database session, so
handlers never construct them by hand.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.services.media import MediaUploader, get_media_uploader
from app.services.session import SessionManager
from app.services.users import UserStore


async def get_user_store(db: Annotated[AsyncSession, Depends(get_db)]) -> UserStore:
    return UserStore(db)


async def get_session_manager(
    store: Annotated[UserStore, Depends(get_user_store)],
) -> SessionManager:
    return SessionManager(store)


DbSession = Annotated[AsyncSession, Depends(get_db)]
Store = Annotated[UserStore, Depends(get_user_store)]
Sessions = Annotated[SessionManager, Depends(get_session_manager)]
Uploader = Annotated[MediaUploader, Depends(get_media_uploader)]
