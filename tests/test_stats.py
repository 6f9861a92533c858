"""
Tests for stats document parsing and dashboard aggregation.
"""

from playerhub.models.user import User
from playerhub.stats import (
    parse_game_stats,
    summarize_user,
    user_fields_from_player_document,
    win_rate,
    xp_progress,
)


def make_user(**kwargs) -> User:
    fields = dict(
        username="alice",
        display_name="",
        level=1,
        xp=0,
        rank="Bronze I",
        title="New Player",
        games_played=0,
        hours_played=0,
        friends_count=0,
        achievements=0,
        game_stats=None,
    )
    fields.update(kwargs)
    return User(**fields)


def test_parse_game_stats_defaults():
    stats = parse_game_stats(None)
    assert stats.killer.kills == 0
    assert stats.counselor.perks == []
    assert stats.banned is False


def test_parse_game_stats_partial_document():
    stats = parse_game_stats({"killer": {"kills": 4}})
    assert stats.killer.kills == 4
    assert stats.killer.games_played == 0
    assert stats.counselor.games_played == 0


def test_parse_game_stats_malformed_role_replaced():
    stats = parse_game_stats(
        {
            "killer": {"kills": "lots"},
            "counselor": {"escapes": 2},
            "achievements": ["a", "b"],
            "banned": True,
        }
    )
    assert stats.killer.kills == 0
    assert stats.counselor.escapes == 2
    assert stats.achievements == ["a", "b"]
    assert stats.banned is True


def test_win_rate():
    assert win_rate(0, 0) == 0.0
    assert win_rate(1, 3) == 33.3
    assert win_rate(5, 5) == 100.0


def test_xp_progress():
    assert xp_progress(1, 0) == (0.0, 1000)
    assert xp_progress(3, 2450) == (45.0, 550)
    assert xp_progress(2, 5000) == (0.0, 0)


def test_summarize_user_falls_back_to_username():
    summary = summarize_user(make_user())
    assert summary.display_name == "alice"
    assert summary.total_kills == 0
    assert summary.overall_win_rate == 0.0


def test_summarize_user_role_breakdown():
    user = make_user(
        display_name="Alice",
        achievements=1,
        game_stats={
            "killer": {"games_played": 2, "games_won": 2, "kills": 11, "perks": ["a", "b"]},
            "counselor": {"games_played": 2, "games_won": 0, "escapes": 0},
            "achievements": ["x", "y", "z"],
        },
    )
    summary = summarize_user(user)
    assert summary.killer.win_rate == 100.0
    assert summary.killer.perks_owned == 2
    assert summary.counselor.win_rate == 0.0
    assert summary.overall_win_rate == 50.0
    assert summary.total_kills == 11
    assert summary.achievements == 3


def test_player_document_only_maps_present_keys():
    fields = user_fields_from_player_document({"killer": {"games_played": 2}})
    assert fields["games_played"] == 2
    assert fields["achievements"] == 0
    assert "level" not in fields
    assert "display_name" not in fields


def test_parse_game_stats_non_object_document():
    assert parse_game_stats(["legacy"]) == parse_game_stats(None)
    assert parse_game_stats("killer:3").killer.kills == 0


def test_parse_game_stats_banned_flag_strings():
    assert parse_game_stats({"banned": "false"}).banned is False
    assert parse_game_stats({"banned": "true"}).banned is True
    # Malformed role forces the fallback path; the flag must still parse
    assert parse_game_stats({"killer": "x", "banned": "false"}).banned is False
    assert parse_game_stats({"killer": "x", "banned": "maybe"}).banned is False


def test_summarize_user_non_object_game_stats():
    summary = summarize_user(make_user(game_stats=[1, 2, 3]))
    assert summary.total_kills == 0
    assert summary.banned is False


def test_player_document_not_an_object():
    fields = user_fields_from_player_document(["legacy"])
    assert fields["games_played"] == 0
    assert fields["achievements"] == 0
