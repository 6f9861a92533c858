"""
Signed-in user's dashboard API routes for PlayerHub.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator

from playerhub.config import Settings, get_settings
from playerhub.database import to_naive_utc
from playerhub.errors import NotFound
from playerhub.models.user import User
from playerhub.api.auth import UserResponse, get_current_user, require_session
from playerhub.api.games import GameResponse
from playerhub.stats import DashboardSummary, summarize_user
from playerhub.storage import Storage, get_storage

router = APIRouter()


# Request/Response schemas
class GameSessionCreateRequest(BaseModel):
    """Request schema for recording play time."""

    game_id: UUID
    playtime: int = Field(default=0, ge=0)
    last_played: datetime | None = Field(default=None)

    @field_validator("last_played")
    @classmethod
    def _normalize_last_played(cls, value: datetime | None) -> datetime | None:
        # Stored as naive UTC so ordering holds across client offsets
        return to_naive_utc(value) if value is not None else None


class GameSessionResponse(BaseModel):
    """Response schema for a play-history entry."""

    id: UUID
    user_id: UUID
    game_id: UUID
    playtime: int
    last_played: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class RecentGameResponse(GameSessionResponse):
    """Play-history entry joined with its game."""

    game: GameResponse


class StatsUpdateRequest(BaseModel):
    """Partial update of aggregate stats. Omitted fields are left alone."""

    level: int | None = Field(default=None, ge=1)
    xp: int | None = Field(default=None, ge=0)
    rank: str | None = Field(default=None, max_length=50)
    title: str | None = Field(default=None, max_length=100)
    games_played: int | None = Field(default=None, ge=0)
    hours_played: int | None = Field(default=None, ge=0)
    friends_count: int | None = Field(default=None, ge=0)
    achievements: int | None = Field(default=None, ge=0)


# Routes
@router.get("/games", response_model=list[RecentGameResponse])
async def list_recent_games(
    user_id: Annotated[UUID, Depends(require_session)],
    storage: Annotated[Storage, Depends(get_storage)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> list[RecentGameResponse]:
    """
    List the signed-in user's most recently played games, newest first.
    """
    rows = await storage.get_user_game_sessions(user_id, limit=settings.recent_sessions_limit)

    return [
        RecentGameResponse(
            id=session.id,
            user_id=session.user_id,
            game_id=session.game_id,
            playtime=session.playtime,
            last_played=session.last_played,
            created_at=session.created_at,
            game=GameResponse.model_validate(game),
        )
        for session, game in rows
    ]


@router.post(
    "/games",
    response_model=GameSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_game_session(
    request: GameSessionCreateRequest,
    user_id: Annotated[UUID, Depends(require_session)],
    storage: Annotated[Storage, Depends(get_storage)],
):
    """
    Record a play session for the signed-in user.
    """
    if await storage.get_game(request.game_id) is None:
        raise NotFound("Game not found")

    fields = {"user_id": user_id, "game_id": request.game_id, "playtime": request.playtime}
    if request.last_played is not None:
        fields["last_played"] = request.last_played

    return await storage.create_user_game_session(fields)


@router.get("/stats", response_model=DashboardSummary)
async def get_stats(
    user: Annotated[User, Depends(get_current_user)],
) -> DashboardSummary:
    """
    Dashboard metrics for the signed-in user.
    """
    return summarize_user(user)


@router.patch("/stats", response_model=UserResponse)
async def update_stats(
    request: StatsUpdateRequest,
    user_id: Annotated[UUID, Depends(require_session)],
    storage: Annotated[Storage, Depends(get_storage)],
) -> User:
    """
    Apply a partial update to the signed-in user's stats.
    """
    changes = request.model_dump(exclude_unset=True, exclude_none=True)

    if not await storage.update_user_stats(user_id, changes):
        raise NotFound("User not found")

    return await storage.get_user(user_id)
