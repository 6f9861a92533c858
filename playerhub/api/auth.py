"""
Authentication API routes for PlayerHub.
"""

import logging
from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import APIKeyCookie
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from playerhub.config import Settings, get_settings
from playerhub.database import get_db
from playerhub.errors import InvalidCredentials, NotFound, Unauthorized, ValidationError
from playerhub.models.user import User
from playerhub.security import sign_session_id, unsign_session_id
from playerhub.sessions import SessionStore, get_session_store
from playerhub.stats import GameStats, parse_game_stats
from playerhub.storage import Storage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()
session_cookie = APIKeyCookie(name=get_settings().session_cookie_name, auto_error=False)


# Request/Response schemas
class RegisterRequest(BaseModel):
    """Request schema for account registration."""

    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(...)
    display_name: str | None = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    """Request schema for login."""

    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)


class UserResponse(BaseModel):
    """User as returned to clients. Never carries the password hash."""

    id: UUID
    external_id: str | None
    username: str
    display_name: str
    profile_image_url: str | None
    level: int
    xp: int
    rank: str
    title: str
    games_played: int
    hours_played: int
    friends_count: int
    achievements: int
    game_stats: GameStats
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_validator("game_stats", mode="before")
    @classmethod
    def _default_game_stats(cls, value: Any) -> GameStats:
        if isinstance(value, GameStats):
            return value
        return parse_game_stats(value)


class LoginResponse(BaseModel):
    """Response schema for login success."""

    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


# Dependencies
async def require_session(
    request: Request,
    cookie: Annotated[str | None, Depends(session_cookie)],
    db: Annotated[AsyncSession, Depends(get_db)],
    store: Annotated[SessionStore, Depends(get_session_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UUID:
    """
    Dependency guarding protected routes.
    Resolves the session cookie to a user id or raises Unauthorized.
    """
    if cookie is None:
        raise Unauthorized()

    sid = unsign_session_id(cookie, settings.secret_key, settings.algorithm)
    if sid is None:
        raise Unauthorized()

    session = await store.get(db, sid)
    if session is None:
        # Persist the removal of an expired row before rejecting
        await db.commit()
        raise Unauthorized()

    try:
        user_id = UUID(session.user_id)
    except ValueError:
        raise Unauthorized()

    request.state.session_id = sid
    request.state.user_id = user_id
    return user_id


async def get_current_user(
    user_id: Annotated[UUID, Depends(require_session)],
    storage: Annotated[Storage, Depends(get_storage)],
) -> User:
    """
    Dependency returning the signed-in user.
    Raises NotFound if the session outlived its user.
    """
    user = await storage.get_user(user_id)
    if user is None:
        raise NotFound("User not found")
    return user


# Routes
@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    storage: Annotated[Storage, Depends(get_storage)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """
    Register a new account.
    Returns the created user information.
    """
    if len(request.password) < settings.min_password_length:
        message = f"Password must be at least {settings.min_password_length} characters"
        raise ValidationError(message, errors=[{"field": "password", "message": message}])

    return await storage.create_user(
        {
            "username": request.username,
            "password": request.password,
            "display_name": request.display_name or request.username,
        }
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    storage: Annotated[Storage, Depends(get_storage)],
    store: Annotated[SessionStore, Depends(get_session_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LoginResponse:
    """
    Login with username and password.
    Starts a server-side session and sets the session cookie.
    """
    user = await storage.authenticate_user(request.username, request.password)

    # Same error for unknown user and wrong password
    if user is None:
        logger.info(f"Failed login for {request.username!r}")
        raise InvalidCredentials()

    session = await store.create(db, user.id)

    response.set_cookie(
        key=settings.session_cookie_name,
        value=sign_session_id(session.sid, settings.secret_key, settings.algorithm),
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )

    logger.info(f"User {user.username} logged in")
    return LoginResponse(message="Login successful", user=UserResponse.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    user_id: Annotated[UUID, Depends(require_session)],
    db: Annotated[AsyncSession, Depends(get_db)],
    store: Annotated[SessionStore, Depends(get_session_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """
    Logout and destroy the current session.
    """
    await store.destroy(db, request.state.session_id)
    response.delete_cookie(settings.session_cookie_name, httponly=True, samesite="lax")

    logger.info(f"User {user_id} logged out")
    return MessageResponse(message="Logout successful")


@router.get("/user", response_model=UserResponse)
async def get_user(
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    """
    Get the current signed-in user's information.
    """
    return user
