"""
Server-side session store for PlayerHub.

Sessions live in the ``sessions`` table and are referenced from the client
by a signed, HTTP-only cookie. The store is created once in the application
lifespan and reached through the ``get_session_store`` dependency.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from fastapi import Request
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from playerhub.errors import SessionStoreError, StoreUnavailable
from playerhub.models.session import Session
from playerhub.security import new_session_id

logger = logging.getLogger(__name__)


@dataclass
class SessionData:
    """Resolved payload of a live session."""

    sid: str
    user_id: str
    expire: datetime


class SessionStore:
    """
    Creates, resolves and destroys sessions.

    Expiry is absolute: a session lives ``ttl`` from creation and is not
    extended by use.
    """

    def __init__(self, ttl: timedelta) -> None:
        self.ttl = ttl

    async def create(self, db: AsyncSession, user_id: str) -> SessionData:
        """Persist a new session for a user and return it."""
        sid = new_session_id()
        expire = datetime.utcnow() + self.ttl
        data = {"user_id": str(user_id)}

        try:
            db.add(Session(sid=sid, data=data, expire=expire))
            await db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to create session: {e}")
            raise SessionStoreError("Could not create session") from e

        return SessionData(sid=sid, user_id=data["user_id"], expire=expire)

    async def get(self, db: AsyncSession, sid: str) -> SessionData | None:
        """
        Resolve a session id. Returns None if unknown or expired;
        expired rows are deleted on sight.
        """
        try:
            result = await db.execute(select(Session).where(Session.sid == sid))
            session = result.scalar_one_or_none()

            if session is None:
                return None

            if session.is_expired() or session.user_id is None:
                await db.delete(session)
                await db.flush()
                return None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read session: {e}")
            raise StoreUnavailable() from e

        return SessionData(
            sid=session.sid,
            user_id=session.user_id,
            expire=session.expire,
        )

    async def destroy(self, db: AsyncSession, sid: str) -> None:
        """Delete a session. Deleting an unknown id is not an error."""
        try:
            await db.execute(delete(Session).where(Session.sid == sid))
            await db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to destroy session: {e}")
            raise SessionStoreError("Could not log out") from e

    async def purge_expired(self, db: AsyncSession) -> int:
        """Delete all expired sessions. Returns the number removed."""
        try:
            result = await db.execute(
                delete(Session).where(Session.expire <= datetime.utcnow())
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to purge sessions: {e}")
            raise SessionStoreError() from e
        return result.rowcount


def get_session_store(request: Request) -> SessionStore:
    """Dependency returning the store created at startup."""
    store = getattr(request.app.state, "session_store", None)
    if store is None:
        raise SessionStoreError("Session store is not initialized")
    return store
