"""Service layer for player statistics, achievements and profiles."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from khelkheleko.constants import ACHIEVEMENTS, PLAYER_PROFILES, PLAYER_STATS
from khelkheleko.errors import ValidationError
from khelkheleko.services.registration_service import RegistrationService
from khelkheleko.utils import epoch_millis, utcnow

from .models import (
    DEFAULT_PRIVACY,
    SKILL_LEVELS,
    Achievement,
    PlayerProfile,
    PlayerStat,
    PlayerSummary,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

BASE_RATING = 1000
TOURNAMENT_BONUS = 50
WIN_BONUS = 25
MATCH_BONUS = 5
MAX_RATING = 5000
PERFECT_RECORD_MIN_MATCHES = 3
VETERAN_TOURNAMENTS = 10

PROFILE_FIELDS = (
    "bio",
    "favorite_sports",
    "skill_level",
    "location",
    "date_of_birth",
    "height",
    "weight",
    "preferred_position",
    "social_links",
    "privacy_settings",
)


def calculate_rating(tournaments: int, wins: int, matches: int) -> float:
    """Overall rating: participation bonuses scaled by up to 50% for win rate."""
    if tournaments == 0:
        return 0
    win_rate = wins / matches if matches > 0 else 0
    multiplier = 1 + win_rate * 0.5
    total = (
        BASE_RATING
        + tournaments * TOURNAMENT_BONUS
        + wins * WIN_BONUS
        + matches * MATCH_BONUS
    ) * multiplier
    return min(round(total, 1), MAX_RATING)


class PlayerStatsService:
    """Reads and records per-tournament player results."""

    @staticmethod
    def get_stats(player_id: str, db: Client | None = None) -> list[PlayerStat]:
        """Every stat row for a player, newest first."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(PLAYER_STATS)
            .where(filter=firestore.FieldFilter("player_id", "==", player_id))
            .stream()
        )
        rows = []
        for doc in docs:
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                rows.append(data)
        rows.sort(key=lambda s: s.get("created_at") or utcnow(), reverse=True)
        return rows

    @staticmethod
    def get_player_stats(player_id: str, db: Client | None = None) -> PlayerSummary:
        """Totals across all of a player's tournaments."""
        if db is None:
            db = firestore.client()
        stats = PlayerStatsService.get_stats(player_id, db)
        tournaments = len(RegistrationService.list_for_player(player_id, db))
        matches = sum(int(s.get("matches_played", 0)) for s in stats)
        wins = sum(int(s.get("matches_won", 0)) for s in stats)
        hours = sum(float(s.get("hours_played", 0)) for s in stats)
        return {
            "total_tournaments": tournaments,
            "total_matches": matches,
            "matches_won": wins,
            "hours_played": hours,
            "overall_rating": calculate_rating(tournaments, wins, matches),
            "win_rate": (wins / matches * 100) if matches > 0 else 0,
        }

    @staticmethod
    def get_sport_stats(
        player_id: str, sport_type: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Totals for one sport; tournaments counts recorded results."""
        if db is None:
            db = firestore.client()
        stats = [
            s
            for s in PlayerStatsService.get_stats(player_id, db)
            if s.get("sport_type") == sport_type
        ]
        tournaments = len(stats)
        matches = sum(int(s.get("matches_played", 0)) for s in stats)
        wins = sum(int(s.get("matches_won", 0)) for s in stats)
        return {
            "tournaments": tournaments,
            "matches": matches,
            "wins": wins,
            "hours": sum(float(s.get("hours_played", 0)) for s in stats),
            "rating": calculate_rating(tournaments, wins, matches),
        }

    @staticmethod
    def add_tournament_result(
        player_id: str,
        tournament_id: str,
        tournament_name: str,
        sport_type: str,
        matches_played: int,
        matches_won: int,
        hours_played: float = 0,
        position: int | None = None,
        performance_rating: float = 0,
        db: Client | None = None,
    ) -> tuple[PlayerStat, list[Achievement]]:
        """Store a tournament result and award any achievements it earns."""
        if db is None:
            db = firestore.client()
        if matches_played < 0 or not 0 <= matches_won <= matches_played:
            raise ValidationError("Matches won must be between 0 and matches played.")

        now = utcnow()
        stat: PlayerStat = {
            "id": f"stat_{epoch_millis()}_{uuid.uuid4().hex[:4]}",
            "player_id": player_id,
            "tournament_id": tournament_id,
            "tournament_name": tournament_name,
            "sport_type": sport_type,
            "matches_played": int(matches_played),
            "matches_won": int(matches_won),
            "matches_lost": int(matches_played) - int(matches_won),
            "hours_played": float(hours_played or 0),
            "performance_rating": float(performance_rating or 0),
            "position": position,
            "created_at": now,
            "updated_at": now,
        }
        db.collection(PLAYER_STATS).document(stat["id"]).set(dict(stat))
        return stat, AchievementService.award_for_result(player_id, stat, position, db)


class AchievementService:
    """Awards and lists player achievements."""

    @staticmethod
    def list_for_player(player_id: str, db: Client | None = None) -> list[Achievement]:
        """A player's achievements, most recent first."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(ACHIEVEMENTS)
            .where(filter=firestore.FieldFilter("player_id", "==", player_id))
            .stream()
        )
        results = []
        for doc in docs:
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                results.append(data)
        results.sort(key=lambda a: a.get("earned_date") or utcnow(), reverse=True)
        return results

    @staticmethod
    def award(
        db: Client, player_id: str, key: str, achievement: dict[str, Any]
    ) -> Achievement | None:
        """Store an achievement unless the player already holds it."""
        achievement_id = f"{player_id}_{key}"
        ref = db.collection(ACHIEVEMENTS).document(achievement_id)
        doc = ref.get()
        if doc.exists and doc.to_dict():
            return None
        record: Achievement = {
            "id": achievement_id,
            "player_id": player_id,
            "tournament_id": None,
            "tournament_name": None,
            "earned_date": utcnow(),
            **achievement,
        }
        ref.set(dict(record))
        return record

    @staticmethod
    def award_for_result(
        player_id: str,
        stat: PlayerStat,
        position: int | None = None,
        db: Client | None = None,
    ) -> list[Achievement]:
        """Check a new result against every achievement rule."""
        if db is None:
            db = firestore.client()
        tournament = {
            "tournament_id": stat["tournament_id"],
            "tournament_name": stat["tournament_name"],
        }
        name = stat["tournament_name"]
        candidates: list[tuple[str, dict[str, Any]]] = []

        if position == 1:
            candidates.append(
                (
                    f"tournament_winner_{stat['tournament_id']}",
                    {
                        "type": "tournament_winner",
                        "title": "Tournament Champion",
                        "description": f"Won {name}",
                        "badge_color": "gold",
                        **tournament,
                    },
                )
            )
        if position == 2:  # noqa: PLR2004
            candidates.append(
                (
                    f"tournament_runner_up_{stat['tournament_id']}",
                    {
                        "type": "tournament_runner_up",
                        "title": "Tournament Runner-up",
                        "description": f"Finished 2nd in {name}",
                        "badge_color": "silver",
                        **tournament,
                    },
                )
            )
        played = stat["matches_played"]
        if played >= PERFECT_RECORD_MIN_MATCHES and stat["matches_won"] == played:
            candidates.append(
                (
                    f"fair_play_{stat['tournament_id']}",
                    {
                        "type": "fair_play",
                        "title": "Perfect Record",
                        "description": f"Won all {played} matches in {name}",
                        "badge_color": "purple",
                        **tournament,
                    },
                )
            )

        total = PlayerStatsService.get_player_stats(player_id, db)["total_tournaments"]
        if total == 1:
            candidates.append(
                (
                    "milestone_first_steps",
                    {
                        "type": "milestone",
                        "title": "First Steps",
                        "description": "Completed your first tournament",
                        "badge_color": "blue",
                    },
                )
            )
        if total == VETERAN_TOURNAMENTS:
            candidates.append(
                (
                    "milestone_veteran",
                    {
                        "type": "milestone",
                        "title": "Tournament Veteran",
                        "description": f"Participated in {VETERAN_TOURNAMENTS} tournaments",
                        "badge_color": "green",
                    },
                )
            )

        awarded = []
        for key, achievement in candidates:
            record = AchievementService.award(db, player_id, key, achievement)
            if record:
                awarded.append(record)
        return awarded


class ProfileService:
    """Player profile storage."""

    @staticmethod
    def get_player_profile(
        player_id: str, db: Client | None = None
    ) -> PlayerProfile | None:
        """The stored profile, or None."""
        if db is None:
            db = firestore.client()
        doc = db.collection(PLAYER_PROFILES).document(player_id).get()
        data = doc.to_dict() if doc.exists else None
        if not data:
            return None
        data["id"] = player_id
        return data

    @staticmethod
    def update_player_profile(
        player_id: str, changes: dict[str, Any], db: Client | None = None
    ) -> PlayerProfile:
        """Merge ``changes`` into the profile, creating it with defaults."""
        if db is None:
            db = firestore.client()
        existing = ProfileService.get_player_profile(player_id, db) or {}
        if changes.get("skill_level") and changes["skill_level"] not in SKILL_LEVELS:
            raise ValidationError(f"Unknown skill level: {changes['skill_level']}")

        now = utcnow()
        profile: PlayerProfile = {
            "id": player_id,
            "user_id": player_id,
            "bio": "",
            "favorite_sports": [],
            "skill_level": "beginner",
            "location": "",
            "social_links": {},
            "privacy_settings": dict(DEFAULT_PRIVACY),
            "created_at": existing.get("created_at") or now,
        }
        profile.update({k: v for k, v in existing.items() if k in PROFILE_FIELDS})
        profile.update(
            {k: v for k, v in changes.items() if k in PROFILE_FIELDS and v not in (None, "")}
        )
        profile["updated_at"] = now
        db.collection(PLAYER_PROFILES).document(player_id).set(dict(profile))
        return profile
