"""Data models for player stats, achievements and profiles."""

from __future__ import annotations

from typing import Any, TypedDict

from khelkheleko.core.models import FirestoreDocument

ACHIEVEMENT_TYPES = (
    "tournament_winner",
    "tournament_runner_up",
    "most_improved",
    "fair_play",
    "milestone",
)

DEFAULT_PRIVACY = {"show_stats": True, "show_achievements": True, "show_contact": False}

SKILL_LEVELS = ("beginner", "intermediate", "advanced", "professional")


class PlayerStat(FirestoreDocument, total=False):
    """One player's results in one tournament."""

    player_id: str
    tournament_id: str
    tournament_name: str
    sport_type: str
    matches_played: int
    matches_won: int
    matches_lost: int
    hours_played: float
    performance_rating: float
    position: int | None


class Achievement(TypedDict, total=False):
    """A badge earned by a player."""

    id: str
    player_id: str
    type: str
    title: str
    description: str
    tournament_id: str | None
    tournament_name: str | None
    earned_date: Any
    badge_color: str


class PlayerProfile(FirestoreDocument, total=False):
    """Public profile details for a player."""

    user_id: str
    bio: str
    favorite_sports: list[str]
    skill_level: str
    location: str
    date_of_birth: str | None
    height: float | None
    weight: float | None
    preferred_position: str | None
    social_links: dict[str, str]
    privacy_settings: dict[str, bool]


class PlayerSummary(TypedDict):
    """Aggregate stats shown on the dashboard."""

    total_tournaments: int
    total_matches: int
    matches_won: int
    hours_played: float
    overall_rating: float
    win_rate: float
