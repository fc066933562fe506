"""Filtering and map markers for tournament discovery."""

from __future__ import annotations

import datetime
from typing import Any

from khelkheleko.constants import STATUS_APPROVED, STATUS_PENDING
from khelkheleko.utils import parse_date

LISTED_STATUSES = (STATUS_APPROVED, STATUS_PENDING)


def is_registration_open(
    tournament: dict[str, Any], today: datetime.date | None = None
) -> bool:
    """Open until the end of the registration deadline day."""
    deadline = parse_date(tournament.get("registration_deadline"))
    if deadline is None:
        return False
    return deadline >= (today or datetime.date.today())


def is_full(tournament: dict[str, Any]) -> bool:
    return int(tournament.get("current_participants") or 0) >= int(
        tournament.get("max_participants") or 0
    )


def filter_tournaments(
    tournaments: list[dict[str, Any]],
    search: str | None = None,
    province: str | None = None,
    sport: str | None = None,
    registration: str | None = None,
    today: datetime.date | None = None,
) -> list[dict[str, Any]]:
    """Apply the listing filters.

    ``search`` matches name, venue or sport case-insensitively;
    ``registration`` is ``open``, ``closed`` or anything else for both.
    """
    term = (search or "").strip().lower()
    results = []
    for t in tournaments:
        if term and not any(
            term in str(t.get(field) or "").lower()
            for field in ("name", "venue_name", "sport_type")
        ):
            continue
        if province and t.get("province") != province:
            continue
        if sport and t.get("sport_type") != sport:
            continue
        if registration == "open" and not is_registration_open(t, today):
            continue
        if registration == "closed" and is_registration_open(t, today):
            continue
        results.append(t)
    return results


def map_marker(tournament: dict[str, Any], today: datetime.date | None = None) -> dict[str, Any]:
    """JSON-safe marker data for one located tournament."""
    return {
        "id": tournament["id"],
        "name": tournament.get("name"),
        "sport_type": tournament.get("sport_type"),
        "venue_name": tournament.get("venue_name"),
        "district": tournament.get("district"),
        "province": tournament.get("province"),
        "latitude": tournament["latitude"],
        "longitude": tournament["longitude"],
        "start_date": tournament.get("start_date"),
        "registration_deadline": tournament.get("registration_deadline"),
        "entry_fee": tournament.get("entry_fee", 0),
        "current_participants": tournament.get("current_participants", 0),
        "max_participants": tournament.get("max_participants", 0),
        "status": tournament.get("status"),
        "registration_open": is_registration_open(tournament, today),
        "is_full": is_full(tournament),
    }


def map_markers(tournaments: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Markers for every tournament that has coordinates."""
    today = datetime.date.today()
    return [
        map_marker(t, today)
        for t in tournaments
        if t.get("latitude") is not None and t.get("longitude") is not None
    ]
