"""Tests for tournament discovery filters, the map and geocoding lookups."""

from __future__ import annotations

import datetime
from unittest.mock import patch

from khelkheleko.discovery.services import (
    filter_tournaments,
    is_full,
    is_registration_open,
    map_markers,
)
from khelkheleko.services.tournament_service import TournamentService
from tests.helpers import ORGANIZER, PLAYER, create_tournament, login, tournament_data

TODAY = datetime.date(2026, 3, 1)

TOURNAMENTS = [
    {
        "id": "t1",
        "name": "Pokhara Cricket League",
        "venue_name": "Rangasala",
        "sport_type": "Cricket",
        "province": "Gandaki Province",
        "registration_deadline": "2026-03-10",
        "current_participants": 4,
        "max_participants": 8,
        "latitude": 28.2,
        "longitude": 83.98,
    },
    {
        "id": "t2",
        "name": "Valley Futsal",
        "venue_name": "Dhobighat Futsal",
        "sport_type": "Futsal",
        "province": "Bagmati Province",
        "registration_deadline": "2026-02-20",
        "current_participants": 8,
        "max_participants": 8,
    },
]


def test_search_is_case_insensitive_over_name_venue_and_sport():
    assert [t["id"] for t in filter_tournaments(TOURNAMENTS, search="cricket")] == ["t1"]  # nosec B101
    assert [t["id"] for t in filter_tournaments(TOURNAMENTS, search="DHOBIGHAT")] == ["t2"]  # nosec B101
    assert [t["id"] for t in filter_tournaments(TOURNAMENTS, search="futsal")] == ["t2"]  # nosec B101


def test_province_and_sport_filters():
    assert [  # nosec B101
        t["id"] for t in filter_tournaments(TOURNAMENTS, province="Gandaki Province")
    ] == ["t1"]
    assert filter_tournaments(TOURNAMENTS, sport="Tennis") == []  # nosec B101


def test_registration_filter_uses_deadline():
    open_ids = [t["id"] for t in filter_tournaments(TOURNAMENTS, registration="open", today=TODAY)]
    closed_ids = [
        t["id"] for t in filter_tournaments(TOURNAMENTS, registration="closed", today=TODAY)
    ]

    assert open_ids == ["t1"]  # nosec B101
    assert closed_ids == ["t2"]  # nosec B101


def test_deadline_day_is_still_open():
    assert is_registration_open({"registration_deadline": "2026-03-01"}, TODAY)  # nosec B101
    assert not is_registration_open({}, TODAY)  # nosec B101


def test_full_when_at_capacity():
    assert is_full(TOURNAMENTS[1])  # nosec B101
    assert not is_full(TOURNAMENTS[0])  # nosec B101


def test_markers_skip_tournaments_without_coordinates():
    markers = map_markers(TOURNAMENTS)

    assert [m["id"] for m in markers] == ["t1"]  # nosec B101
    assert markers[0]["latitude"] == 28.2  # nosec B101


def test_map_lists_approved_and_pending_only(client, db):
    approved = create_tournament(db, name="Approved Open")
    pending = create_tournament(db, name="Awaiting Review", approve=False)
    TournamentService.submit_tournament(
        tournament_data(name="Drafted"), ORGANIZER, as_draft=True, db=db
    )
    rejected = create_tournament(db, name="Turned Down", approve=False)
    TournamentService.reject_tournament(rejected["id"], "Duplicate listing", db=db)

    data = client.get("/tournament-map/data.json").get_json()

    assert {m["id"] for m in data["markers"]} == {approved["id"], pending["id"]}  # nosec B101


def test_facilities_page_filters_by_search(client, db):
    create_tournament(db, name="Biratnagar Badminton Open", sport_type="Badminton")
    create_tournament(db, name="Butwal Chess.com Blitz", sport_type="Chess.com")

    response = client.get("/facilities?q=badminton")

    assert response.status_code == 200  # nosec B101
    assert b"Biratnagar Badminton Open" in response.data  # nosec B101
    assert b"Butwal Chess.com Blitz" not in response.data  # nosec B101


def test_tournament_map_page_renders(client, db):
    create_tournament(db)
    response = client.get("/tournament-map?registration=open")
    assert response.status_code == 200  # nosec B101
    assert b"leaflet" in response.data  # nosec B101


@patch("khelkheleko.discovery.routes.geocode_address", return_value=(27.7, 85.3))
def test_geocode_search(mock_geocode, client, db):
    login(client, db, PLAYER)
    data = client.get("/geocode/search?q=Thamel").get_json()

    assert data == {"latitude": 27.7, "longitude": 85.3}  # nosec B101
    mock_geocode.assert_called_once_with("Thamel")


@patch("khelkheleko.discovery.routes.geocode_address", return_value=(None, None))
def test_geocode_search_not_found(mock_geocode, client, db):
    login(client, db, PLAYER)
    assert client.get("/geocode/search?q=Nowhere").status_code == 404  # nosec B101
    assert client.get("/geocode/search").status_code == 400  # nosec B101


def test_geocode_reverse_needs_numbers(client, db):
    login(client, db, PLAYER)
    assert client.get("/geocode/reverse?lat=abc&lon=1").status_code == 400  # nosec B101
