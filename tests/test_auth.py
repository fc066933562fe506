import unittest
from unittest.mock import MagicMock, patch

from firebase_admin import auth as firebase_auth
from mockfirestore import MockFirestore

from khelkheleko import create_app
from khelkheleko.auth.services import MOCK_ADMIN_UID, AuthService
from khelkheleko.errors import ValidationError
from tests.helpers import TEST_CONFIG

MOCK_PASSWORD = "Password123"  # nosec
MOCK_ADMIN_PASSWORD = "Admin-Secret-1"  # nosec


class AuthFirebaseTestCase(unittest.TestCase):
    def setUp(self):
        """Set up a test client with an in-memory Firestore and a mocked Auth."""
        self.db = MockFirestore()
        self.mock_auth = MagicMock()
        self.mock_auth.EmailAlreadyExistsError = firebase_auth.EmailAlreadyExistsError
        self.mock_auth.InvalidIdTokenError = firebase_auth.InvalidIdTokenError
        self.mock_auth.ExpiredIdTokenError = firebase_auth.ExpiredIdTokenError

        patchers = {
            "init_app": patch("firebase_admin.initialize_app"),
            "firestore": patch("firebase_admin.firestore.client", return_value=self.db),
            "auth": patch("khelkheleko.auth.services.auth", new=self.mock_auth),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        config = dict(TEST_CONFIG)
        config.update(
            ENABLE_MOCK_LOGIN=True,
            MOCK_ADMIN_EMAIL="adminsabin@gmail.com",
            MOCK_ADMIN_PASSWORD=MOCK_ADMIN_PASSWORD,
            ADMIN_EMAILS=["ops@khelkheleko.com"],
            FIREBASE_API_KEY="test-key",
        )
        self.app = create_app(config)
        self.client = self.app.test_client()

    def test_login_page_loads(self):
        response = self.client.get("/auth/login")
        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Login", response.data)

    def test_successful_registration(self):
        """Sign-up creates the Auth account and the profile document."""
        self.mock_auth.create_user.return_value = MagicMock(uid="new_user_uid")

        response = self.client.post(
            "/auth/register",
            data={
                "full_name": "New Organizer",
                "email": "new@example.com",
                "phone": "9812345678",
                "role": "organizer",
                "password": MOCK_PASSWORD,
                "confirm_password": MOCK_PASSWORD,
            },
            follow_redirects=True,
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Registration successful!", response.data)
        self.mock_auth.create_user.assert_called_once_with(
            email="new@example.com", password=MOCK_PASSWORD, display_name="New Organizer"
        )
        stored = self.db.collection("users").document("new_user_uid").get().to_dict()
        self.assertEqual(stored["role"], "organizer")
        self.assertEqual(stored["full_name"], "New Organizer")

    def test_registration_with_weak_password(self):
        response = self.client.post(
            "/auth/register",
            data={
                "full_name": "New Player",
                "email": "new@example.com",
                "role": "player",
                "password": "password",
                "confirm_password": "password",
            },
        )
        self.assertEqual(response.status_code, 200)
        self.mock_auth.create_user.assert_not_called()

    def test_duplicate_email(self):
        self.mock_auth.create_user.side_effect = firebase_auth.EmailAlreadyExistsError(
            "exists", None, None
        )
        response = self.client.post(
            "/auth/register",
            data={
                "full_name": "New Player",
                "email": "taken@example.com",
                "role": "player",
                "password": MOCK_PASSWORD,
                "confirm_password": MOCK_PASSWORD,
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn(b"already registered", response.data)

    def test_reserved_emails_cannot_register(self):
        with self.app.app_context():
            for email in ("adminsabin@gmail.com", "OPS@khelkheleko.com"):
                with self.assertRaises(ValidationError):
                    AuthService.register_user("Someone", email, MOCK_PASSWORD, db=self.db)
        self.mock_auth.create_user.assert_not_called()

    def test_admin_role_cannot_be_chosen(self):
        with self.app.app_context():
            with self.assertRaises(ValidationError):
                AuthService.register_user(
                    "Someone", "x@example.com", MOCK_PASSWORD, role="admin", db=self.db
                )

    def test_mock_admin_login(self):
        response = self.client.post(
            "/auth/login",
            data={"email": "adminsabin@gmail.com", "password": MOCK_ADMIN_PASSWORD},
        )
        self.assertEqual(response.status_code, 302)
        self.assertIn("/admin", response.location)
        with self.client.session_transaction() as sess:
            self.assertEqual(sess["user_id"], MOCK_ADMIN_UID)
            self.assertEqual(sess["role"], "admin")

    @patch("khelkheleko.auth.services.requests.post")
    def test_mock_login_disabled_falls_through(self, mock_post):
        self.app.config["ENABLE_MOCK_LOGIN"] = False
        mock_post.return_value = MagicMock(status_code=400)

        response = self.client.post(
            "/auth/login",
            data={"email": "adminsabin@gmail.com", "password": MOCK_ADMIN_PASSWORD},
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Invalid email or password.", response.data)
        with self.client.session_transaction() as sess:
            self.assertNotIn("user_id", sess)

    @patch("khelkheleko.auth.services.requests.post")
    def test_password_login_redirects_to_next(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200)
        mock_post.return_value.json.return_value = {"idToken": "token"}
        self.mock_auth.verify_id_token.return_value = {"uid": "player1"}
        self.db.collection("users").document("player1").set(
            {"email": "sita@example.com", "full_name": "Sita", "role": "player"}
        )

        response = self.client.post(
            "/auth/login?next=/notifications/",
            data={"email": "sita@example.com", "password": MOCK_PASSWORD},
        )

        self.assertEqual(response.status_code, 302)
        self.assertTrue(response.location.endswith("/notifications/"))
        with self.client.session_transaction() as sess:
            self.assertEqual(sess["role"], "player")

    @patch("khelkheleko.auth.services.requests.post")
    def test_external_next_is_ignored(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200)
        mock_post.return_value.json.return_value = {"idToken": "token"}
        self.mock_auth.verify_id_token.return_value = {"uid": "org1"}
        self.db.collection("users").document("org1").set(
            {"email": "org@example.com", "full_name": "Ram", "role": "organizer"}
        )

        response = self.client.post(
            "/auth/login?next=//evil.example.com/",
            data={"email": "org@example.com", "password": MOCK_PASSWORD},
        )

        self.assertEqual(response.status_code, 302)
        self.assertTrue(response.location.endswith("/organizer-dashboard"))

    def test_session_login(self):
        """The client-side Firebase token becomes a server session."""
        self.mock_auth.verify_id_token.return_value = {"uid": "player1"}
        self.db.collection("users").document("player1").set(
            {"email": "sita@example.com", "full_name": "Sita", "role": "player"}
        )

        response = self.client.post("/auth/session_login", json={"idToken": "test_token"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json["status"], "success")
        self.assertTrue(response.json["redirect"].endswith("/player-dashboard"))
        with self.client.session_transaction() as sess:
            self.assertEqual(sess["user_id"], "player1")

    def test_session_login_rejects_bad_token(self):
        self.mock_auth.verify_id_token.side_effect = ValueError("bad token")
        response = self.client.post("/auth/session_login", json={"idToken": "nope"})
        self.assertEqual(response.status_code, 401)

    def test_session_login_unknown_user(self):
        self.mock_auth.verify_id_token.return_value = {"uid": "ghost"}
        response = self.client.post("/auth/session_login", json={"idToken": "t"})
        self.assertEqual(response.status_code, 404)

    def test_logout(self):
        with self.client.session_transaction() as sess:
            sess["user_id"] = "player1"
            sess["role"] = "player"
        response = self.client.get("/auth/logout")
        self.assertEqual(response.status_code, 302)
        with self.client.session_transaction() as sess:
            self.assertNotIn("user_id", sess)


if __name__ == "__main__":
    unittest.main()
