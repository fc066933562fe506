"""Service layer for the notification inbox."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from khelkheleko.constants import NOTIFICATIONS
from khelkheleko.errors import NotFoundError, PermissionDeniedError, ValidationError
from khelkheleko.utils import epoch_millis, utcnow

from .models import NOTIFICATION_TYPES, TARGET_ALL, TARGET_ROLES, Notification

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


class NotificationService:
    """Stores and reads addressed and role-broadcast notifications."""

    @staticmethod
    def add_notification(
        payload: dict[str, Any], db: Client | None = None
    ) -> Notification:
        """Store a new unread notification and return it."""
        if db is None:
            db = firestore.client()

        n_type = payload.get("type")
        if n_type not in NOTIFICATION_TYPES:
            raise ValidationError(f"Unknown notification type: {n_type}")
        target_role = payload.get("target_role") or TARGET_ALL
        if target_role not in TARGET_ROLES:
            raise ValidationError(f"Unknown target role: {target_role}")

        notification_id = f"notification_{epoch_millis()}_{uuid.uuid4().hex[:6]}"
        notification: Notification = {
            "id": notification_id,
            "type": n_type,
            "title": payload.get("title", ""),
            "message": payload.get("message", ""),
            "timestamp": utcnow(),
            "read": False,
            "user_id": payload.get("user_id"),
            "target_role": target_role,
            "tournament_id": payload.get("tournament_id"),
            "tournament_name": payload.get("tournament_name"),
            "read_by": [],
            "cleared_by": [],
        }
        db.collection(NOTIFICATIONS).document(notification_id).set(dict(notification))
        return notification

    @staticmethod
    def _stream(db: Client, field: str, value: Any) -> list[dict[str, Any]]:
        docs = (
            db.collection(NOTIFICATIONS)
            .where(filter=firestore.FieldFilter(field, "==", value))
            .stream()
        )
        results = []
        for doc in docs:
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                results.append(data)
        return results

    @staticmethod
    def list_for_viewer(
        user: dict[str, Any], db: Client | None = None
    ) -> list[dict[str, Any]]:
        """Return the viewer's inbox, newest first.

        The inbox is the union of notifications addressed to the user and
        broadcasts to the user's role (or to everyone).
        """
        if db is None:
            db = firestore.client()
        uid = user["uid"]
        role = user.get("role", "player")

        inbox: dict[str, dict[str, Any]] = {}
        for item in NotificationService._stream(db, "user_id", uid):
            inbox[item["id"]] = item

        for target in {role, TARGET_ALL}:
            for item in NotificationService._stream(db, "target_role", target):
                if item.get("user_id"):
                    continue
                if uid in item.get("cleared_by", []):
                    continue
                item["read"] = uid in item.get("read_by", [])
                inbox[item["id"]] = item

        return sorted(
            inbox.values(), key=lambda n: n["timestamp"], reverse=True
        )

    @staticmethod
    def unread_count(user: dict[str, Any], db: Client | None = None) -> int:
        """Count unread notifications in the viewer's inbox."""
        return sum(
            1 for n in NotificationService.list_for_viewer(user, db) if not n["read"]
        )

    @staticmethod
    def _visible_ref(db: Client, notification_id: str, user: dict[str, Any]):
        ref = db.collection(NOTIFICATIONS).document(notification_id)
        doc = ref.get()
        data = doc.to_dict() if doc.exists else None
        if not data:
            raise NotFoundError("Notification not found.")
        addressee = data.get("user_id")
        if addressee and addressee != user["uid"]:
            raise PermissionDeniedError("That notification belongs to someone else.")
        if not addressee and data.get("target_role") not in {
            user.get("role"),
            TARGET_ALL,
        }:
            raise PermissionDeniedError("That notification belongs to someone else.")
        return ref, data

    @staticmethod
    def mark_as_read(
        notification_id: str, user: dict[str, Any], db: Client | None = None
    ) -> None:
        """Mark one notification as read for the viewer."""
        if db is None:
            db = firestore.client()
        ref, data = NotificationService._visible_ref(db, notification_id, user)
        if data.get("user_id"):
            ref.update({"read": True})
            return
        read_by = list(data.get("read_by", []))
        if user["uid"] not in read_by:
            read_by.append(user["uid"])
            ref.update({"read_by": read_by})

    @staticmethod
    def mark_all_as_read(user: dict[str, Any], db: Client | None = None) -> int:
        """Mark the whole inbox as read; returns how many changed."""
        if db is None:
            db = firestore.client()
        changed = 0
        for item in NotificationService.list_for_viewer(user, db):
            if not item["read"]:
                NotificationService.mark_as_read(item["id"], user, db)
                changed += 1
        return changed

    @staticmethod
    def clear(user: dict[str, Any], db: Client | None = None) -> int:
        """Remove the viewer's inbox.

        Addressed notifications are deleted; broadcasts are hidden for this
        viewer only.
        """
        if db is None:
            db = firestore.client()
        cleared = 0
        for item in NotificationService.list_for_viewer(user, db):
            ref = db.collection(NOTIFICATIONS).document(item["id"])
            if item.get("user_id"):
                ref.delete()
            else:
                cleared_by = list(item.get("cleared_by", []))
                cleared_by.append(user["uid"])
                ref.update({"cleared_by": cleared_by})
            cleared += 1
        return cleared

    @staticmethod
    def delete_for_tournament(tournament_id: str, db: Client | None = None) -> None:
        """Drop broadcasts that advertise a tournament which no longer exists."""
        if db is None:
            db = firestore.client()
        for item in NotificationService._stream(db, "tournament_id", tournament_id):
            if not item.get("user_id"):
                db.collection(NOTIFICATIONS).document(item["id"]).delete()
