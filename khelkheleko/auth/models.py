"""Data models for the auth blueprint."""

from __future__ import annotations

from collections import UserDict
from typing import Any

from flask_login import UserMixin

from khelkheleko.core.models import FirestoreDocument


class User(FirestoreDocument, total=False):
    """A user document in Firestore."""

    uid: str
    email: str
    full_name: str
    role: str
    phone: str


class UserSession(UserDict, UserMixin):
    """Wrapper for the user dict loaded into ``g.user``."""

    def __init__(self, data: dict[str, Any]) -> None:
        """Initialize the session wrapper."""
        super().__init__(data)

    def get_id(self) -> str:
        """Return the Firebase uid."""
        return str(self.data.get("uid"))

    @property
    def role(self) -> str:
        """Return the user's role, defaulting to player."""
        return str(self.data.get("role") or "player")

    @property
    def display_name(self) -> str:
        """Return a printable name for the user."""
        return str(self.data.get("full_name") or self.data.get("email") or "Player")
