"""
API v1 Router
"""

from fastapi import APIRouter

from app.api.v1 import subscriptions, users

router = APIRouter()

# Include all endpoint routers
router.include_router(users.router)
router.include_router(subscriptions.router)

__all__ = ["router"]
