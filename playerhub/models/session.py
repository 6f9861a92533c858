"""
Session model for PlayerHub.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from playerhub.database import Base


class Session(Base):
    """
    Server-side login session.
    Maps an opaque session id to a small payload and an absolute expiry.
    """

    __tablename__ = "sessions"
    __table_args__ = (Index("ix_sessions_expire", "expire"),)

    sid: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
    )
    data: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
    )
    expire: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
    )

    @property
    def user_id(self) -> str | None:
        return self.data.get("user_id")

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if session has expired."""
        return (now or datetime.utcnow()) >= self.expire

    def __repr__(self) -> str:
        return f"<Session(sid={self.sid[:8]}..., user_id={self.user_id})>"
