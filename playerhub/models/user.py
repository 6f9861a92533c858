"""
User model for PlayerHub.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from sqlalchemy import String, DateTime, Integer, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from playerhub.database import Base

if TYPE_CHECKING:
    from playerhub.models.game import UserGameSession


class User(Base):
    """
    Player account model.
    Stores credentials, profile fields and aggregate stats. Role-specific
    stats live in the ``game_stats`` JSON document.
    """

    __tablename__ = "users"

    id: Mapped[Uuid] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    external_id: Mapped[str | None] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=True,
    )
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    display_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    # Null for accounts provisioned by an external identity provider
    password_hash: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    profile_image_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rank: Mapped[str] = mapped_column(String(50), default="Bronze I", nullable=False)
    title: Mapped[str] = mapped_column(String(100), default="New Player", nullable=False)
    games_played: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    hours_played: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    friends_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    achievements: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    game_stats: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    game_sessions: Mapped[list["UserGameSession"]] = relationship(
        "UserGameSession",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
