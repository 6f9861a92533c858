"""
Game catalog API routes for PlayerHub.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from playerhub.models.game import Game
from playerhub.storage import Storage, get_storage

router = APIRouter()


class GameResponse(BaseModel):
    """Response schema for a catalog entry."""

    id: UUID
    name: str
    genre: str
    thumbnail: str | None
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("", response_model=list[GameResponse])
async def list_games(
    storage: Annotated[Storage, Depends(get_storage)],
) -> list[Game]:
    """
    List the full game catalog. No authentication required.
    """
    return await storage.list_games()
