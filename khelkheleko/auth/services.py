"""Service layer for sign-up and sign-in."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import requests
from firebase_admin import auth, firestore
from flask import current_app

from khelkheleko.constants import ROLE_ADMIN, ROLE_ORGANIZER, ROLE_PLAYER, USERS
from khelkheleko.errors import (
    AppError,
    AuthenticationError,
    DuplicateResourceError,
    NotFoundError,
    ValidationError,
)
from khelkheleko.utils import utcnow

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

MOCK_ADMIN_UID = "admin-001"
SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
SIGN_IN_TIMEOUT = 10


class AuthService:
    """Resolves the current user from mock credentials or Firebase Auth."""

    @staticmethod
    def is_reserved_email(email: str) -> bool:
        """Admin addresses cannot be claimed through public sign-up."""
        email = (email or "").strip().lower()
        reserved = {e.lower() for e in current_app.config.get("ADMIN_EMAILS", [])}
        mock_email = current_app.config.get("MOCK_ADMIN_EMAIL")
        if mock_email:
            reserved.add(mock_email.lower())
        return email in reserved

    @staticmethod
    def _mock_login_matches(email: str, password: str) -> bool:
        config = current_app.config
        if not config.get("ENABLE_MOCK_LOGIN") or not config.get("MOCK_ADMIN_PASSWORD"):
            return False
        return (
            email.strip().lower() == (config.get("MOCK_ADMIN_EMAIL") or "").lower()
            and password == config["MOCK_ADMIN_PASSWORD"]
        )

    @staticmethod
    def _mock_admin(db: Client) -> dict[str, Any]:
        ref = db.collection(USERS).document(MOCK_ADMIN_UID)
        doc = ref.get()
        data = doc.to_dict() if doc.exists else None
        if not data:
            data = {
                "email": current_app.config["MOCK_ADMIN_EMAIL"],
                "full_name": "System Administrator",
                "role": ROLE_ADMIN,
                "created_at": utcnow(),
            }
            ref.set(data)
        return {**data, "uid": MOCK_ADMIN_UID}

    @staticmethod
    def sign_in_with_password(email: str, password: str) -> str:
        """Exchange email and password for a Firebase ID token."""
        api_key = current_app.config.get("FIREBASE_API_KEY")
        if not api_key:
            current_app.logger.error("FIREBASE_API_KEY is not set; cannot sign in.")
            raise AppError("Sign-in is not configured.", 503)
        try:
            response = requests.post(
                SIGN_IN_URL,
                params={"key": api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=SIGN_IN_TIMEOUT,
            )
        except requests.RequestException as e:
            current_app.logger.warning(f"Sign-in request failed: {e}")
            raise AppError("Could not reach the sign-in service. Try again.", 503) from e

        if response.status_code != 200:
            raise AuthenticationError()
        return str(response.json()["idToken"])

    @staticmethod
    def user_from_id_token(id_token: str, db: Client | None = None) -> dict[str, Any]:
        """Verify an ID token and load the matching user document."""
        if db is None:
            db = firestore.client()
        try:
            decoded = auth.verify_id_token(id_token)
        except (auth.InvalidIdTokenError, auth.ExpiredIdTokenError, ValueError) as e:
            raise AuthenticationError("Invalid or expired sign-in token.") from e

        uid = decoded["uid"]
        doc = db.collection(USERS).document(uid).get()
        data = doc.to_dict() if doc.exists else None
        if not data:
            raise NotFoundError("User not found in Firestore.")
        return {**data, "uid": uid}

    @staticmethod
    def authenticate(
        email: str, password: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Return the user for a credential pair or raise AuthenticationError."""
        if db is None:
            db = firestore.client()
        if AuthService._mock_login_matches(email, password):
            current_app.logger.info("Mock admin login used.")
            return AuthService._mock_admin(db)
        id_token = AuthService.sign_in_with_password(email, password)
        return AuthService.user_from_id_token(id_token, db)

    @staticmethod
    def register_user(
        full_name: str,
        email: str,
        password: str,
        role: str = ROLE_PLAYER,
        phone: str | None = None,
        db: Client | None = None,
    ) -> str:
        """Create a Firebase Auth account plus its profile document."""
        if db is None:
            db = firestore.client()
        if role not in (ROLE_PLAYER, ROLE_ORGANIZER):
            raise ValidationError("Choose either player or organizer.")
        if AuthService.is_reserved_email(email):
            raise ValidationError("This email address is reserved.")

        try:
            user_record = auth.create_user(
                email=email, password=password, display_name=full_name
            )
        except auth.EmailAlreadyExistsError as e:
            raise DuplicateResourceError("Email address is already registered.") from e

        db.collection(USERS).document(user_record.uid).set(
            {
                "email": email,
                "full_name": full_name,
                "role": role,
                "phone": phone or "",
                "created_at": utcnow(),
            }
        )
        return str(user_record.uid)
