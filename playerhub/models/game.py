"""
Game catalog and play-history models for PlayerHub.
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from playerhub.database import Base

if TYPE_CHECKING:
    from playerhub.models.user import User


class Game(Base):
    """
    Catalog entry. Created administratively, read-only for players.
    """

    __tablename__ = "games"

    id: Mapped[Uuid] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    genre: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    thumbnail: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    sessions: Mapped[list["UserGameSession"]] = relationship(
        "UserGameSession",
        back_populates="game",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Game(id={self.id}, name={self.name})>"


class UserGameSession(Base):
    """
    One user's play history for one game.
    Removed together with either its user or its game.
    """

    __tablename__ = "user_game_sessions"

    id: Mapped[Uuid] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[Uuid] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    game_id: Mapped[Uuid] = mapped_column(
        Uuid,
        ForeignKey("games.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Minutes
    playtime: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    last_played: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        index=True,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="game_sessions",
    )
    game: Mapped["Game"] = relationship(
        "Game",
        back_populates="sessions",
    )

    def __repr__(self) -> str:
        return (
            f"<UserGameSession(id={self.id}, user_id={self.user_id}, "
            f"game_id={self.game_id}, playtime={self.playtime})>"
        )
