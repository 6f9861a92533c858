"""
Data access layer for PlayerHub.

Every read and write of users, games and play history goes through
``Storage``. Statements are built with SQLAlchemy so all values are bound
parameters.
"""

import functools
import logging
from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from playerhub.config import get_settings
from playerhub.database import get_db, to_naive_utc
from playerhub.errors import StoreUnavailable, UniqueConstraintViolation
from playerhub.models.game import Game, UserGameSession
from playerhub.models.user import User
from playerhub.security import DUMMY_PASSWORD_HASH, hash_password, verify_password
from playerhub.stats import user_fields_from_player_document

logger = logging.getLogger(__name__)

# Columns a stats update may touch
STAT_FIELDS = frozenset(
    {
        "level",
        "xp",
        "rank",
        "title",
        "games_played",
        "hours_played",
        "friends_count",
        "achievements",
    }
)


def _store_errors(func):
    """Translate SQLAlchemy failures into domain errors."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except IntegrityError as e:
            logger.warning(f"{func.__name__}: integrity error: {e.orig}")
            raise UniqueConstraintViolation() from e
        except SQLAlchemyError as e:
            logger.error(f"{func.__name__}: database error: {e}")
            raise StoreUnavailable() from e

    return wrapper


class Storage:
    """
    Query boundary bound to one request's database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # Users

    @_store_errors
    async def get_user(self, user_id: UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @_store_errors
    async def get_user_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def authenticate_user(self, username: str, password: str) -> User | None:
        """
        Return the user if the password matches, otherwise None.
        Unknown usernames still pay for one hash comparison. Hashing runs in
        the threadpool so it does not stall the event loop.
        """
        user = await self.get_user_by_username(username)

        if user is None or user.password_hash is None:
            await run_in_threadpool(verify_password, password, DUMMY_PASSWORD_HASH)
            return None

        if not await run_in_threadpool(verify_password, password, user.password_hash):
            return None

        return user

    @_store_errors
    async def create_user(self, fields: dict[str, Any]) -> User:
        """
        Create a user. A plain ``password`` in fields is hashed before storing.
        Raises UniqueConstraintViolation if the username is taken.
        """
        fields = dict(fields)
        password = fields.pop("password", None)
        if password is not None:
            fields["password_hash"] = await run_in_threadpool(hash_password, password)
        fields.setdefault("display_name", fields.get("username"))

        existing = await self.get_user_by_username(fields.get("username"))
        if existing is not None:
            raise UniqueConstraintViolation("Username already exists")

        user = User(**fields)
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)

        logger.info(f"Created user {user.username} ({user.id})")
        return user

    @_store_errors
    async def upsert_user(self, external_id: str, fields: dict[str, Any]) -> User:
        """
        Insert a user keyed on ``external_id`` or merge fields into the existing row.

        Runs as one INSERT ... ON CONFLICT DO UPDATE statement. Columns absent
        from ``fields`` keep their stored values. ``fields`` must include
        ``username`` since a first insert needs it. Only PostgreSQL and SQLite
        are supported; other dialects raise StoreUnavailable.
        """
        if "username" not in fields:
            raise ValueError("upsert_user requires a username")

        now = datetime.utcnow()
        values = {"external_id": external_id, **fields}
        values.setdefault("display_name", fields["username"])
        values.setdefault("created_at", now)
        values["updated_at"] = now

        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            logger.error(f"upsert_user: no native upsert for dialect {dialect}")
            raise StoreUnavailable()

        stmt = insert(User).values(**values)
        updates = {key: stmt.excluded[key] for key in fields}
        updates["updated_at"] = stmt.excluded.updated_at
        stmt = stmt.on_conflict_do_update(
            index_elements=[User.external_id],
            set_=updates,
        ).returning(User)

        result = await self.db.scalars(
            stmt,
            execution_options={"populate_existing": True},
        )
        return result.one()

    async def upsert_player_document(
        self,
        external_id: str,
        username: str,
        document: dict[str, Any] | None,
    ) -> User:
        """Upsert a user from a legacy single-document player record."""
        fields = user_fields_from_player_document(document)
        fields["username"] = username
        return await self.upsert_user(external_id, fields)

    @_store_errors
    async def update_user_stats(self, user_id: UUID, stats: dict[str, Any]) -> bool:
        """
        Apply a partial update to a user's stat columns.

        Only keys present in ``stats`` change; ``updated_at`` is always
        refreshed. Returns False if the user does not exist.
        """
        unknown = set(stats) - STAT_FIELDS
        if unknown:
            raise ValueError(f"Not stat fields: {sorted(unknown)}")

        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(**stats, updated_at=datetime.utcnow())
        )
        return result.rowcount > 0

    # Games

    @_store_errors
    async def list_games(self) -> list[Game]:
        result = await self.db.execute(select(Game).order_by(Game.name))
        return list(result.scalars().all())

    @_store_errors
    async def get_game(self, game_id: UUID) -> Game | None:
        result = await self.db.execute(select(Game).where(Game.id == game_id))
        return result.scalar_one_or_none()

    @_store_errors
    async def create_game(self, fields: dict[str, Any]) -> Game:
        game = Game(**fields)
        self.db.add(game)
        await self.db.flush()
        await self.db.refresh(game)
        return game

    # Play history

    @_store_errors
    async def get_user_game_sessions(
        self,
        user_id: UUID,
        limit: int | None = None,
    ) -> list[tuple[UserGameSession, Game]]:
        """
        Most recently played sessions for a user, newest first.

        Sessions whose game no longer resolves are dropped by the join, so
        fewer than ``limit`` rows may come back.
        """
        if limit is None:
            limit = get_settings().recent_sessions_limit

        result = await self.db.execute(
            select(UserGameSession, Game)
            .join(Game, UserGameSession.game_id == Game.id)
            .where(UserGameSession.user_id == user_id)
            .order_by(
                UserGameSession.last_played.desc(),
                UserGameSession.created_at.desc(),
            )
            .limit(limit)
        )
        return [(session, game) for session, game in result.all()]

    @_store_errors
    async def create_user_game_session(self, fields: dict[str, Any]) -> UserGameSession:
        fields = dict(fields)
        if fields.get("last_played") is not None:
            fields["last_played"] = to_naive_utc(fields["last_played"])

        session = UserGameSession(**fields)
        self.db.add(session)
        await self.db.flush()
        await self.db.refresh(session)
        return session


async def get_storage(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Storage:
    """Dependency providing a Storage bound to the request's session."""
    return Storage(db)
