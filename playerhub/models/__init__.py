"""
SQLAlchemy models for PlayerHub.
"""

from playerhub.models.user import User
from playerhub.models.game import Game, UserGameSession
from playerhub.models.session import Session

__all__ = ["User", "Game", "UserGameSession", "Session"]
