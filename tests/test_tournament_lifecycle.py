"""Tests for the tournament review workflow and lifecycle."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from mockfirestore import MockFirestore

from khelkheleko import create_app
from khelkheleko.errors import (
    ConcurrentUpdateError,
    InvalidTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from khelkheleko.notification.services import NotificationService
from khelkheleko.services.registration_service import RegistrationService
from khelkheleko.services.tournament_service import TournamentService, can_transition
from tests.helpers import (
    ADMIN,
    ORGANIZER,
    PLAYER,
    TEST_CONFIG,
    create_tournament,
    registration_details,
    tournament_data,
)


class TournamentLifecycleTestCase(unittest.TestCase):
    """Submission, review and status changes against an in-memory Firestore."""

    def setUp(self) -> None:
        self.db = MockFirestore()
        patchers = [
            patch("firebase_admin.initialize_app"),
            patch("firebase_admin.firestore.client", return_value=self.db),
        ]
        for p in patchers:
            p.start()
            self.addCleanup(p.stop)
        self.app = create_app(dict(TEST_CONFIG))
        self.app_context = self.app.app_context()
        self.app_context.push()

    def tearDown(self) -> None:
        self.app_context.pop()

    def _notifications(self) -> list[dict]:
        return [d.to_dict() for d in self.db.collection("notifications").stream() if d.to_dict()]

    def test_submit_creates_pending_tournament_and_alerts_admins(self) -> None:
        tournament = create_tournament(self.db, approve=False)

        self.assertEqual(tournament["status"], "pending_approval")
        self.assertEqual(tournament["current_participants"], 0)
        self.assertEqual(tournament["organizer_id"], ORGANIZER["uid"])
        self.assertEqual(tournament["version"], 1)

        inbox = NotificationService.list_for_viewer(ADMIN, self.db)
        self.assertEqual([n["type"] for n in inbox], ["tournament_submitted"])

    def test_draft_is_not_announced_until_submitted(self) -> None:
        tournament_id = TournamentService.submit_tournament(
            tournament_data(), ORGANIZER, as_draft=True, db=self.db
        )
        self.assertEqual(self._notifications(), [])

        submitted = TournamentService.submit_draft(tournament_id, ORGANIZER["uid"], self.db)

        self.assertEqual(submitted["status"], "pending_approval")
        self.assertEqual(len(self._notifications()), 1)

    def test_deadline_after_start_is_rejected(self) -> None:
        data = tournament_data()
        data["registration_deadline"] = data["end_date"]
        with self.assertRaises(ValidationError):
            TournamentService.submit_tournament(data, ORGANIZER, db=self.db)

    def test_participant_limits(self) -> None:
        with self.assertRaises(ValidationError):
            TournamentService.submit_tournament(
                tournament_data(max_participants=1), ORGANIZER, db=self.db
            )

    @patch("khelkheleko.services.tournament_service.geocode_address", return_value=(27.7, 85.3))
    def test_missing_coordinates_are_geocoded(self, mock_geocode) -> None:
        tournament_id = TournamentService.submit_tournament(
            tournament_data(latitude=None, longitude=None), ORGANIZER, db=self.db
        )

        tournament = TournamentService.get_tournament(tournament_id, self.db)
        self.assertEqual((tournament["latitude"], tournament["longitude"]), (27.7, 85.3))
        mock_geocode.assert_called_once_with("Dhobighat, Lalitpur, Lalitpur")

    def test_approve_notifies_organizer_and_players_once(self) -> None:
        tournament = create_tournament(self.db, approve=False)
        before = len(self._notifications())

        approved = TournamentService.approve_tournament(tournament["id"], db=self.db)

        self.assertEqual(approved["status"], "approved")
        self.assertEqual(approved["version"], 2)
        types = sorted(n["type"] for n in self._notifications()[before:])
        self.assertEqual(types, ["new_tournament_available", "tournament_approved"])

        player_inbox = NotificationService.list_for_viewer(PLAYER, self.db)
        self.assertEqual(player_inbox[0]["type"], "new_tournament_available")

        count = len(self._notifications())
        with self.assertRaises(InvalidTransitionError):
            TournamentService.approve_tournament(tournament["id"], db=self.db)
        self.assertEqual(len(self._notifications()), count)

    def test_stale_version_is_refused(self) -> None:
        tournament = create_tournament(self.db, approve=False)
        TournamentService.update_tournament(
            tournament["id"], ORGANIZER["uid"], {"prize_pool": 20000}, db=self.db
        )

        with self.assertRaises(ConcurrentUpdateError):
            TournamentService.approve_tournament(
                tournament["id"], expected_version=1, db=self.db
            )

    def test_reject_requires_reason_and_keeps_it(self) -> None:
        tournament = create_tournament(self.db, approve=False)

        with self.assertRaises(ValidationError):
            TournamentService.reject_tournament(tournament["id"], "   ", db=self.db)

        rejected = TournamentService.reject_tournament(
            tournament["id"], "Venue details are incomplete", db=self.db
        )
        self.assertEqual(rejected["status"], "rejected")
        self.assertEqual(rejected["admin_notes"], "Venue details are incomplete")

        inbox = NotificationService.list_for_viewer(ORGANIZER, self.db)
        self.assertEqual(inbox[0]["type"], "tournament_rejected")
        self.assertIn("Venue details are incomplete", inbox[0]["message"])

    def test_rejected_tournament_can_be_resubmitted(self) -> None:
        tournament = create_tournament(self.db, approve=False)
        TournamentService.reject_tournament(tournament["id"], "Fix the dates", db=self.db)

        resubmitted = TournamentService.submit_draft(
            tournament["id"], ORGANIZER["uid"], self.db
        )

        self.assertEqual(resubmitted["status"], "pending_approval")
        self.assertEqual(resubmitted["admin_notes"], "")

    def test_lifecycle_after_approval(self) -> None:
        tournament = create_tournament(self.db)

        with self.assertRaises(PermissionDeniedError):
            TournamentService.start_tournament(tournament["id"], "someone", self.db)

        started = TournamentService.start_tournament(tournament["id"], ORGANIZER["uid"], self.db)
        self.assertEqual(started["status"], "active")
        completed = TournamentService.complete_tournament(
            tournament["id"], ORGANIZER["uid"], self.db
        )
        self.assertEqual(completed["status"], "completed")

        with self.assertRaises(InvalidTransitionError):
            TournamentService.cancel_tournament(tournament["id"], ORGANIZER["uid"], self.db)

    def test_transition_table(self) -> None:
        self.assertTrue(can_transition("draft", "pending_approval"))
        self.assertTrue(can_transition("approved", "cancelled"))
        self.assertFalse(can_transition("draft", "approved"))
        self.assertFalse(can_transition("completed", "active"))
        self.assertFalse(can_transition("cancelled", "approved"))

    @patch("khelkheleko.services.tournament_service.storage")
    def test_media_upload_goes_to_tournament_folder(self, mock_storage) -> None:
        blob = mock_storage.bucket.return_value.blob.return_value
        blob.public_url = "https://storage.example/poster.png"
        upload = MagicMock(filename="Futsal Poster.png")

        url = TournamentService._upload_media("tournament_1", upload, "images")

        self.assertEqual(url, "https://storage.example/poster.png")
        mock_storage.bucket.return_value.blob.assert_called_once_with(
            "tournaments/tournament_1/images/Futsal_Poster.png"
        )
        upload.save.assert_called_once()
        blob.upload_from_filename.assert_called_once()
        blob.make_public.assert_called_once()
        self.assertIsNone(TournamentService._upload_media("tournament_1", None, "images"))

    def test_cannot_shrink_below_registrations(self) -> None:
        tournament = create_tournament(self.db, entry_fee=0)
        for uid in ("p1", "p2", "p3"):
            reg = RegistrationService.build_registration(
                tournament, uid, registration_details(PLAYER)
            )
            RegistrationService.save_registration(reg, db=self.db)

        with self.assertRaises(ValidationError):
            TournamentService.update_tournament(
                tournament["id"], ORGANIZER["uid"], {"max_participants": 2}, db=self.db
            )

    def test_delete_removes_registrations(self) -> None:
        tournament = create_tournament(self.db, entry_fee=0)
        other = create_tournament(self.db, name="Another Cup", entry_fee=0)
        for t in (tournament, other):
            reg = RegistrationService.build_registration(t, PLAYER["uid"], registration_details())
            RegistrationService.save_registration(reg, db=self.db)

        removed = TournamentService.delete_tournament(tournament["id"], self.db)

        self.assertEqual(removed, 1)
        remaining = RegistrationService.list_for_player(PLAYER["uid"], self.db)
        self.assertEqual([r["tournament_id"] for r in remaining], [other["id"]])
        player_inbox = NotificationService.list_for_viewer(PLAYER, self.db)
        self.assertNotIn(
            tournament["id"],
            [n["tournament_id"] for n in player_inbox if n["type"] == "new_tournament_available"],
        )


class TournamentRoutesTestCase(unittest.TestCase):
    """Create, view and review tournaments over HTTP."""

    def setUp(self) -> None:
        self.db = MockFirestore()
        patchers = [
            patch("firebase_admin.initialize_app"),
            patch("firebase_admin.firestore.client", return_value=self.db),
        ]
        for p in patchers:
            p.start()
            self.addCleanup(p.stop)
        self.app = create_app(dict(TEST_CONFIG))
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()

    def tearDown(self) -> None:
        self.app_context.pop()

    def _login(self, user: dict) -> None:
        self.db.collection("users").document(user["uid"]).set(
            {k: v for k, v in user.items() if k != "uid"}
        )
        with self.client.session_transaction() as sess:
            sess["user_id"] = user["uid"]
            sess["role"] = user["role"]

    def test_create_tournament_requires_organizer(self) -> None:
        response = self.client.get("/create-tournament")
        self.assertEqual(response.status_code, 302)
        self.assertIn("/login", response.location)

        self._login(PLAYER)
        response = self.client.get("/create-tournament")
        self.assertEqual(response.status_code, 302)

    def test_create_tournament_form_submits_for_review(self) -> None:
        self._login(ORGANIZER)
        form = tournament_data()
        form.pop("is_premium_listing")
        response = self.client.post("/create-tournament", data=form)

        self.assertEqual(response.status_code, 302)
        tournaments = TournamentService.list_for_organizer(ORGANIZER["uid"], self.db)
        self.assertEqual(len(tournaments), 1)
        self.assertEqual(tournaments[0]["status"], "pending_approval")
        self.assertIn(tournaments[0]["id"], response.location)

    def test_pending_tournament_hidden_from_public(self) -> None:
        tournament = create_tournament(self.db, approve=False)

        response = self.client.get(f"/tournament/{tournament['id']}")
        self.assertEqual(response.status_code, 404)

        self._login(ORGANIZER)
        response = self.client.get(f"/tournament/{tournament['id']}")
        self.assertEqual(response.status_code, 200)

    def test_unknown_tournament_is_404(self) -> None:
        response = self.client.get("/tournament/does-not-exist")
        self.assertEqual(response.status_code, 404)

    def test_view_shows_bracket_names(self) -> None:
        tournament = create_tournament(self.db, entry_fee=0, max_participants=8)
        for uid in ("p1", "p2", "p3", "p4"):
            reg = RegistrationService.build_registration(
                tournament, uid, registration_details(PLAYER)
            )
            RegistrationService.save_registration(reg, db=self.db)

        response = self.client.get(f"/tournament/{tournament['id']}")

        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Semi-Final", response.data)
        self.assertIn(b"Final", response.data)

    def test_admin_approves_and_rejects(self) -> None:
        first = create_tournament(self.db, approve=False)
        second = create_tournament(self.db, name="Second Cup", approve=False)
        self._login(ADMIN)

        response = self.client.post(
            f"/admin/tournaments/{first['id']}/approve", data={"version": "1"}
        )
        self.assertEqual(response.status_code, 302)
        self.assertEqual(
            TournamentService.get_tournament(first["id"], self.db)["status"], "approved"
        )

        self.client.post(f"/admin/tournaments/{second['id']}/reject", data={"reason": ""})
        self.assertEqual(
            TournamentService.get_tournament(second["id"], self.db)["status"],
            "pending_approval",
        )
        self.client.post(
            f"/admin/tournaments/{second['id']}/reject", data={"reason": "Duplicate"}
        )
        self.assertEqual(
            TournamentService.get_tournament(second["id"], self.db)["status"], "rejected"
        )

    def test_admin_routes_need_admin_role(self) -> None:
        tournament = create_tournament(self.db, approve=False)
        self._login(ORGANIZER)

        self.client.post(f"/admin/tournaments/{tournament['id']}/approve", data={})

        self.assertEqual(
            TournamentService.get_tournament(tournament["id"], self.db)["status"],
            "pending_approval",
        )
