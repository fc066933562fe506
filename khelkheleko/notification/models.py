"""Data models for the notification blueprint."""

from __future__ import annotations

from typing import Any, TypedDict

TOURNAMENT_SUBMITTED = "tournament_submitted"
TOURNAMENT_APPROVED = "tournament_approved"
TOURNAMENT_REJECTED = "tournament_rejected"
TOURNAMENT_DELETED = "tournament_deleted"
NEW_TOURNAMENT_AVAILABLE = "new_tournament_available"
REGISTRATION_SUCCESS = "tournament_registration_success"
REGISTRATION_REJECTED = "registration_rejected"

NOTIFICATION_TYPES = frozenset(
    {
        TOURNAMENT_SUBMITTED,
        TOURNAMENT_APPROVED,
        TOURNAMENT_REJECTED,
        TOURNAMENT_DELETED,
        NEW_TOURNAMENT_AVAILABLE,
        REGISTRATION_SUCCESS,
        REGISTRATION_REJECTED,
    }
)

TARGET_ALL = "all"
TARGET_ROLES = frozenset({"admin", "organizer", "player", TARGET_ALL})


class Notification(TypedDict, total=False):
    """A notification document in Firestore.

    Addressed notifications carry a ``user_id``; broadcasts carry only a
    ``target_role`` and track per-viewer state in ``read_by``/``cleared_by``.
    """

    id: str
    type: str
    title: str
    message: str
    timestamp: Any
    read: bool
    user_id: str | None
    target_role: str
    tournament_id: str
    tournament_name: str
    read_by: list[str]
    cleared_by: list[str]
