"""
REST API routes for PlayerHub.
"""

from fastapi import APIRouter

from playerhub.api.auth import router as auth_router
from playerhub.api.games import router as games_router
from playerhub.api.users import router as users_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(games_router, prefix="/games", tags=["games"])
api_router.include_router(users_router, prefix="/user", tags=["user"])

__all__ = ["api_router"]
