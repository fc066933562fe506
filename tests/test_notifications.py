"""Tests for addressed and broadcast notifications."""

from __future__ import annotations

import pytest

from khelkheleko.errors import PermissionDeniedError, ValidationError
from khelkheleko.notification.services import NotificationService
from tests.helpers import ADMIN, ORGANIZER, OTHER_PLAYER, PLAYER, login


def _broadcast(db, role="player", **extra):
    payload = {
        "type": "new_tournament_available",
        "title": "New Tournament Available!",
        "message": "Kathmandu Futsal Cup is open for registration.",
        "target_role": role,
    }
    payload.update(extra)
    return NotificationService.add_notification(payload, db)


def _addressed(db, user=PLAYER):
    return NotificationService.add_notification(
        {
            "type": "tournament_registration_success",
            "title": "Registration Successful!",
            "message": "You are registered.",
            "user_id": user["uid"],
            "target_role": user["role"],
        },
        db,
    )


def test_unknown_type_is_rejected(app, db):
    with pytest.raises(ValidationError):
        NotificationService.add_notification({"type": "spam"}, db)


def test_inbox_merges_addressed_and_role_broadcasts(app, db):
    mine = _addressed(db)
    _addressed(db, OTHER_PLAYER)
    to_players = _broadcast(db)
    to_all = _broadcast(db, role="all")
    _broadcast(db, role="admin", type="tournament_submitted")

    inbox = NotificationService.list_for_viewer(PLAYER, db)

    assert {n["id"] for n in inbox} == {mine["id"], to_players["id"], to_all["id"]}  # nosec B101
    assert NotificationService.unread_count(PLAYER, db) == 3  # nosec B101


def test_broadcast_read_state_is_per_viewer(app, db):
    note = _broadcast(db)

    NotificationService.mark_as_read(note["id"], PLAYER, db)

    assert NotificationService.list_for_viewer(PLAYER, db)[0]["read"] is True  # nosec B101
    assert NotificationService.list_for_viewer(OTHER_PLAYER, db)[0]["read"] is False  # nosec B101


def test_mark_all_as_read(app, db):
    _addressed(db)
    _broadcast(db)

    assert NotificationService.mark_all_as_read(PLAYER, db) == 2  # nosec B101
    assert NotificationService.unread_count(PLAYER, db) == 0  # nosec B101
    assert NotificationService.mark_all_as_read(PLAYER, db) == 0  # nosec B101


def test_cannot_read_someone_elses_notification(app, db):
    note = _addressed(db, OTHER_PLAYER)
    admin_note = _broadcast(db, role="admin", type="tournament_submitted")

    with pytest.raises(PermissionDeniedError):
        NotificationService.mark_as_read(note["id"], PLAYER, db)
    with pytest.raises(PermissionDeniedError):
        NotificationService.mark_as_read(admin_note["id"], PLAYER, db)


def test_clear_hides_broadcasts_only_for_the_viewer(app, db):
    mine = _addressed(db)
    _broadcast(db)

    assert NotificationService.clear(PLAYER, db) == 2  # nosec B101

    assert NotificationService.list_for_viewer(PLAYER, db) == []  # nosec B101
    assert not db.collection("notifications").document(mine["id"]).get().exists  # nosec B101
    assert len(NotificationService.list_for_viewer(OTHER_PLAYER, db)) == 1  # nosec B101


def test_delete_for_tournament_keeps_addressed(app, db):
    _broadcast(db, tournament_id="t1")
    kept = NotificationService.add_notification(
        {
            "type": "tournament_approved",
            "title": "Tournament Approved!",
            "user_id": ORGANIZER["uid"],
            "target_role": "organizer",
            "tournament_id": "t1",
        },
        db,
    )

    NotificationService.delete_for_tournament("t1", db)

    assert NotificationService.list_for_viewer(PLAYER, db) == []  # nosec B101
    assert [n["id"] for n in NotificationService.list_for_viewer(ORGANIZER, db)] == [kept["id"]]  # nosec B101


def test_inbox_page_and_json(client, db):
    login(client, db, PLAYER)
    _broadcast(db)

    page = client.get("/notifications/")
    assert page.status_code == 200  # nosec B101
    assert b"New Tournament Available!" in page.data  # nosec B101

    data = client.get("/notifications/?format=json").get_json()
    assert data["unread"] == 1  # nosec B101
    assert data["notifications"][0]["title"] == "New Tournament Available!"  # nosec B101


def test_read_all_and_clear_routes(client, db):
    login(client, db, PLAYER)
    _addressed(db)
    _broadcast(db)

    response = client.post("/notifications/read-all")
    assert response.status_code == 302  # nosec B101
    assert NotificationService.unread_count(PLAYER, db) == 0  # nosec B101

    client.post("/notifications/clear")
    assert NotificationService.list_for_viewer(PLAYER, db) == []  # nosec B101


def test_inbox_requires_login(client, db):
    response = client.get("/notifications/")
    assert response.status_code == 302  # nosec B101
    assert "login" in response.location  # nosec B101


def test_admin_sees_submissions(app, db):
    _broadcast(db, role="admin", type="tournament_submitted")
    assert len(NotificationService.list_for_viewer(ADMIN, db)) == 1  # nosec B101
