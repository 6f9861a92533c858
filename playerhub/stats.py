"""
Typed view of the per-user ``game_stats`` document and dashboard aggregation.

The document is free-form JSON in the database. Everything read from it goes
through ``parse_game_stats`` so that missing or malformed fields come back as
defaults instead of surfacing as ``None`` further up.
"""

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from playerhub.models.user import User

logger = logging.getLogger(__name__)

XP_PER_LEVEL = 1000

_flag = TypeAdapter(bool)


class KillerStats(BaseModel):
    games_played: int = Field(default=0, ge=0)
    games_won: int = Field(default=0, ge=0)
    kills: int = Field(default=0, ge=0)
    perks: list[str] = Field(default_factory=list)


class CounselorStats(BaseModel):
    games_played: int = Field(default=0, ge=0)
    games_won: int = Field(default=0, ge=0)
    escapes: int = Field(default=0, ge=0)
    perks: list[str] = Field(default_factory=list)


class GameStats(BaseModel):
    """Role-specific stats stored alongside the flat user counters."""

    killer: KillerStats = Field(default_factory=KillerStats)
    counselor: CounselorStats = Field(default_factory=CounselorStats)
    achievements: list[str] = Field(default_factory=list)
    banned: bool = False
    created_at: datetime | None = None

    @property
    def total_games(self) -> int:
        return self.killer.games_played + self.counselor.games_played

    @property
    def total_wins(self) -> int:
        return self.killer.games_won + self.counselor.games_won


def parse_game_stats(raw: dict[str, Any] | None) -> GameStats:
    """
    Build a GameStats from a stored document, substituting defaults.

    A role sub-document that fails validation is replaced by an empty one
    rather than discarding the whole document.
    """
    if not raw:
        return GameStats()

    if not isinstance(raw, dict):
        logger.warning(f"game_stats is a {type(raw).__name__}, not an object; using defaults")
        return GameStats()

    try:
        return GameStats.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Malformed game_stats document, using defaults where needed: {e}")

    stats = GameStats()
    for key, model in (("killer", KillerStats), ("counselor", CounselorStats)):
        try:
            setattr(stats, key, model.model_validate(raw.get(key) or {}))
        except ValidationError:
            pass
    achievements = raw.get("achievements")
    if isinstance(achievements, list):
        stats.achievements = [str(a) for a in achievements]
    try:
        stats.banned = _flag.validate_python(raw.get("banned", False))
    except ValidationError:
        pass
    return stats


def win_rate(won: int, played: int) -> float:
    """Percentage of games won, rounded to one decimal. Zero when nothing played."""
    if played <= 0:
        return 0.0
    return round(won / played * 100, 1)


def xp_progress(level: int, xp: int) -> tuple[float, int]:
    """
    Return (percent through the current level, XP still needed).
    """
    percent = min(100.0, (xp % XP_PER_LEVEL) / (XP_PER_LEVEL / 100))
    remaining = max(0, level * XP_PER_LEVEL - xp)
    return percent, remaining


class RoleSummary(BaseModel):
    games_played: int
    games_won: int
    win_rate: float
    perks_owned: int


class DashboardSummary(BaseModel):
    """Display-ready metrics for a user's dashboard."""

    display_name: str
    level: int
    xp: int
    rank: str
    title: str
    xp_progress_percent: float
    xp_to_next_level: int
    games_played: int
    hours_played: int
    friends_count: int
    achievements: int
    killer: RoleSummary
    counselor: RoleSummary
    total_kills: int
    total_escapes: int
    overall_win_rate: float
    banned: bool


def summarize_user(user: User) -> DashboardSummary:
    stats = parse_game_stats(user.game_stats)
    level = user.level or 1
    xp = user.xp or 0
    percent, remaining = xp_progress(level, xp)

    return DashboardSummary(
        display_name=user.display_name or user.username,
        level=level,
        xp=xp,
        rank=user.rank,
        title=user.title,
        xp_progress_percent=percent,
        xp_to_next_level=remaining,
        games_played=user.games_played or 0,
        hours_played=user.hours_played or 0,
        friends_count=user.friends_count or 0,
        achievements=max(user.achievements or 0, len(stats.achievements)),
        killer=RoleSummary(
            games_played=stats.killer.games_played,
            games_won=stats.killer.games_won,
            win_rate=win_rate(stats.killer.games_won, stats.killer.games_played),
            perks_owned=len(stats.killer.perks),
        ),
        counselor=RoleSummary(
            games_played=stats.counselor.games_played,
            games_won=stats.counselor.games_won,
            win_rate=win_rate(stats.counselor.games_won, stats.counselor.games_played),
            perks_owned=len(stats.counselor.perks),
        ),
        total_kills=stats.killer.kills,
        total_escapes=stats.counselor.escapes,
        overall_win_rate=win_rate(stats.total_wins, stats.total_games),
        banned=stats.banned,
    )


def user_fields_from_player_document(document: dict[str, Any] | None) -> dict[str, Any]:
    """
    Map a legacy single-document player record onto canonical user columns.

    Legacy records keep everything in one JSON blob with ``killer`` and
    ``counselor`` sub-objects. Only keys present in the document are
    returned, so the result can be used as a partial update.
    """
    if not isinstance(document, dict):
        document = {}
    stats = parse_game_stats(document)
    fields: dict[str, Any] = {
        "game_stats": stats.model_dump(mode="json"),
        "games_played": stats.total_games,
        "achievements": len(stats.achievements),
    }

    for source, target in (
        ("displayName", "display_name"),
        ("display_name", "display_name"),
        ("level", "level"),
        ("xp", "xp"),
        ("rank", "rank"),
        ("title", "title"),
        ("profileImageUrl", "profile_image_url"),
        ("friendsCount", "friends_count"),
        ("hoursPlayed", "hours_played"),
    ):
        if document.get(source) is not None:
            fields[target] = document[source]

    return fields
