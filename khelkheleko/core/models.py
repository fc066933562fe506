"""Firestore document shapes shared across blueprints."""

from __future__ import annotations

from typing import Any, TypedDict


class FirestoreDocument(TypedDict, total=False):
    """Fields every stored document carries."""

    id: str
    created_at: Any
    updated_at: Any


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    name: str
    description: str
    sport_type: str
    tournament_type: str
    organizer_id: str
    organizer_name: str
    venue_name: str
    venue_address: str
    facility_name: str
    province: str
    district: str
    latitude: float | None
    longitude: float | None
    start_date: str
    end_date: str
    registration_deadline: str
    max_participants: int
    current_participants: int
    entry_fee: float
    prize_pool: float
    rules: str
    requirements: str
    contact_phone: str
    contact_email: str
    status: str
    admin_notes: str
    images: list[str]
    pdf_document: str | None
    is_premium_listing: bool
    bracket_size: int
    version: int

class MatchPlayer(TypedDict, total=False):
    """A player occupying a bracket slot."""

    id: str
    name: str
    seed: int

class Match(TypedDict, total=False):
    """A bracket match; persisted only once it carries players or a result."""

    id: str
    tournament_id: str
    round: int
    position: int
    player1: MatchPlayer | None
    player2: MatchPlayer | None
    winner: str | None
    score: str | None
    status: str  # pending/in_progress/completed
    scheduled_time: Any

class BracketRound(TypedDict):
    """One column of the bracket view."""

    round: int
    name: str
    matches: list[Match]

class Registration(TypedDict, total=False):
    """A player's registration for a tournament.

    There is one document per registration; player and organizer views are
    queries on ``player_id`` and ``organizer_id``.
    """

    id: str
    tournament_id: str
    tournament_name: str
    sport_type: str
    organizer_id: str
    player_id: str
    player_name: str
    email: str
    phone: str
    age: int
    experience_level: str
    team_name: str
    emergency_contact: str
    medical_conditions: str
    registration_date: Any
    status: str  # registered/confirmed/rejected
    entry_fee_paid: bool
    payment_status: str  # pending/not_required/completed/failed
    transaction_id: str | None
    amount_paid: float
    version: int
