"""Factories for users, tournaments and sessions used across the tests."""

from __future__ import annotations

import datetime
from typing import Any

from khelkheleko.services.tournament_service import TournamentService

ORGANIZER = {"uid": "org1", "email": "org@example.com", "full_name": "Ram Organizer", "role": "organizer"}
PLAYER = {"uid": "player1", "email": "sita@example.com", "full_name": "Sita Player", "role": "player"}
OTHER_PLAYER = {"uid": "player2", "email": "hari@example.com", "full_name": "Hari Player", "role": "player"}
ADMIN = {"uid": "admin1", "email": "admin@example.com", "full_name": "Admin", "role": "admin"}

TEST_CONFIG = {
    "TESTING": True,
    "WTF_CSRF_ENABLED": False,
    "SERVER_NAME": "localhost",
    "MAIL_USERNAME": None,
    "ESEWA_SIMULATE": True,
    "ESEWA_VERIFY_STATUS": False,
    "PLATFORM_COMMISSION_RATE": 3.0,
}


def add_user(db, user: dict[str, Any]) -> dict[str, Any]:
    db.collection("users").document(user["uid"]).set(
        {k: v for k, v in user.items() if k != "uid"}
    )
    return user


def login(client, db, user: dict[str, Any]) -> None:
    """Store the user and put them in the test client's session."""
    add_user(db, user)
    with client.session_transaction() as sess:
        sess["user_id"] = user["uid"]
        sess["role"] = user["role"]


def tournament_data(**overrides: Any) -> dict[str, Any]:
    today = datetime.date.today()
    data = {
        "name": "Kathmandu Futsal Cup",
        "description": "Open futsal tournament for amateur teams.",
        "sport_type": "Futsal",
        "tournament_type": "single_elimination",
        "start_date": (today + datetime.timedelta(days=14)).isoformat(),
        "end_date": (today + datetime.timedelta(days=15)).isoformat(),
        "registration_deadline": (today + datetime.timedelta(days=7)).isoformat(),
        "max_participants": 16,
        "entry_fee": 500.0,
        "prize_pool": 10000.0,
        "venue_name": "Dhobighat Futsal",
        "venue_address": "Dhobighat, Lalitpur",
        "province": "Bagmati Province",
        "district": "Lalitpur",
        "latitude": 27.6734,
        "longitude": 85.3046,
        "rules": "FIFA futsal rules apply. Two halves of twenty minutes.",
        "requirements": "Bring your own jersey.",
        "contact_phone": "9800000000",
        "contact_email": "org@example.com",
        "is_premium_listing": False,
    }
    data.update(overrides)
    return data


def create_tournament(
    db, organizer: dict[str, Any] = ORGANIZER, approve: bool = True, **overrides: Any
) -> dict[str, Any]:
    """Submit a tournament (approving it by default) and return the stored record."""
    add_user(db, organizer)
    tournament_id = TournamentService.submit_tournament(
        tournament_data(**overrides), organizer, db=db
    )
    if approve:
        TournamentService.approve_tournament(tournament_id, db=db)
    return TournamentService.get_tournament(tournament_id, db)


def registration_details(user: dict[str, Any] = PLAYER) -> dict[str, Any]:
    return {
        "player_name": user["full_name"],
        "email": user["email"],
        "phone": "9812345678",
        "age": 24,
        "experience_level": "intermediate",
        "team_name": "",
        "emergency_contact": "9800000001",
        "medical_conditions": "",
    }


def registration_form(user: dict[str, Any] = PLAYER) -> dict[str, Any]:
    form = registration_details(user)
    form["terms_accepted"] = "y"
    return form
