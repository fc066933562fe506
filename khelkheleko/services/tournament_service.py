"""Service layer for tournament business logic."""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore, storage
from flask import current_app
from werkzeug.utils import secure_filename

from khelkheleko.constants import (
    MATCHES,
    PENDING_PAYMENTS,
    REGISTRATIONS,
    STATUS_ACTIVE,
    STATUS_APPROVED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_DRAFT,
    STATUS_PENDING,
    STATUS_REJECTED,
    TOURNAMENTS,
    USERS,
)
from khelkheleko.errors import (
    ConcurrentUpdateError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from khelkheleko.notification import models as n
from khelkheleko.notification.services import NotificationService
from khelkheleko.utils import epoch_millis, parse_date, send_email, utcnow

from .geocoder import geocode_address

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_DRAFT: frozenset({STATUS_PENDING}),
    STATUS_PENDING: frozenset({STATUS_APPROVED, STATUS_REJECTED}),
    STATUS_REJECTED: frozenset({STATUS_PENDING}),
    STATUS_APPROVED: frozenset({STATUS_ACTIVE, STATUS_CANCELLED}),
    STATUS_ACTIVE: frozenset({STATUS_COMPLETED, STATUS_CANCELLED}),
}

EDITABLE_STATUSES = frozenset({STATUS_DRAFT, STATUS_PENDING, STATUS_REJECTED, STATUS_APPROVED})

EDITABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "sport_type",
        "tournament_type",
        "venue_name",
        "venue_address",
        "province",
        "district",
        "latitude",
        "longitude",
        "start_date",
        "end_date",
        "registration_deadline",
        "max_participants",
        "entry_fee",
        "prize_pool",
        "rules",
        "requirements",
        "contact_phone",
        "contact_email",
        "is_premium_listing",
    }
)

MIN_PARTICIPANTS = 2
MAX_PARTICIPANTS = 1000


def can_transition(current: str, target: str) -> bool:
    """Whether a tournament in ``current`` may move to ``target``."""
    return target in TRANSITIONS.get(current, frozenset())


def validate_schedule(data: dict[str, Any]) -> None:
    """Check that the registration deadline and dates are in order."""
    start = parse_date(data.get("start_date"))
    end = parse_date(data.get("end_date"))
    deadline = parse_date(data.get("registration_deadline"))
    if not start or not end or not deadline:
        raise ValidationError("Start, end and registration deadline dates are required.")
    if end < start:
        raise ValidationError("The end date cannot be before the start date.")
    if deadline > start:
        raise ValidationError("Registration must close on or before the start date.")


class TournamentService:
    """Handles business logic and data access for tournaments."""

    @staticmethod
    def _upload_media(tournament_id: str, media_file: Any, folder: str) -> str | None:
        """Upload a tournament image or PDF to Cloud Storage."""
        if not media_file or not getattr(media_file, "filename", None):
            return None

        filename = secure_filename(media_file.filename or f"{folder}_{tournament_id}")
        bucket = storage.bucket()
        blob = bucket.blob(f"tournaments/{tournament_id}/{folder}/{filename}")

        with tempfile.NamedTemporaryFile(suffix=os.path.splitext(filename)[1]) as tmp:
            media_file.save(tmp.name)
            blob.upload_from_filename(tmp.name)

        blob.make_public()
        return str(blob.public_url)

    @staticmethod
    def get_tournament(tournament_id: str, db: Client | None = None) -> dict[str, Any]:
        """Fetch a tournament or raise NotFoundError."""
        if db is None:
            db = firestore.client()
        doc = db.collection(TOURNAMENTS).document(tournament_id).get()
        data = doc.to_dict() if doc.exists else None
        if not data:
            raise NotFoundError("Tournament not found.")
        data["id"] = tournament_id
        return data

    @staticmethod
    def _stream_where(db: Client, field: str, value: Any) -> list[dict[str, Any]]:
        docs = (
            db.collection(TOURNAMENTS)
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
    def list_by_status(
        statuses: tuple[str, ...] | list[str], db: Client | None = None
    ) -> list[dict[str, Any]]:
        """Tournaments in any of ``statuses``, newest first."""
        if db is None:
            db = firestore.client()
        results = []
        for status in statuses:
            results.extend(TournamentService._stream_where(db, "status", status))
        results.sort(key=lambda t: t.get("created_at") or utcnow(), reverse=True)
        return results

    @staticmethod
    def list_all(db: Client | None = None) -> list[dict[str, Any]]:
        """Every tournament, newest first."""
        if db is None:
            db = firestore.client()
        results = []
        for doc in db.collection(TOURNAMENTS).stream():
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                results.append(data)
        results.sort(key=lambda t: t.get("created_at") or utcnow(), reverse=True)
        return results

    @staticmethod
    def list_for_organizer(
        organizer_uid: str, db: Client | None = None
    ) -> list[dict[str, Any]]:
        """Tournaments owned by an organizer, newest first."""
        if db is None:
            db = firestore.client()
        results = TournamentService._stream_where(db, "organizer_id", organizer_uid)
        results.sort(key=lambda t: t.get("created_at") or utcnow(), reverse=True)
        return results

    @staticmethod
    def submit_tournament(
        data: dict[str, Any],
        organizer: dict[str, Any],
        as_draft: bool = False,
        images: list[Any] | None = None,
        pdf_document: Any = None,
        db: Client | None = None,
    ) -> str:
        """Create a tournament for review (or as a draft) and return its ID."""
        if db is None:
            db = firestore.client()
        validate_schedule(data)
        if not MIN_PARTICIPANTS <= int(data.get("max_participants") or 0) <= MAX_PARTICIPANTS:
            raise ValidationError(
                f"Max participants must be between {MIN_PARTICIPANTS} and {MAX_PARTICIPANTS}."
            )

        tournament_id = f"tournament_{epoch_millis()}"
        ref = db.collection(TOURNAMENTS).document(tournament_id)
        if ref.get().exists:
            tournament_id = f"{tournament_id}_{uuid.uuid4().hex[:4]}"
            ref = db.collection(TOURNAMENTS).document(tournament_id)

        latitude = data.get("latitude")
        longitude = data.get("longitude")
        if latitude is None or longitude is None:
            latitude, longitude = geocode_address(
                ", ".join(
                    part
                    for part in (data.get("venue_address"), data.get("district"))
                    if part
                )
            )

        image_urls = []
        for image in images or []:
            url = TournamentService._upload_media(tournament_id, image, "images")
            if url:
                image_urls.append(url)
        pdf_url = TournamentService._upload_media(tournament_id, pdf_document, "documents")

        now = utcnow()
        status = STATUS_DRAFT if as_draft else STATUS_PENDING
        payload = {field: data.get(field) for field in EDITABLE_FIELDS}
        payload.update(
            {
                "latitude": latitude,
                "longitude": longitude,
                "facility_name": data.get("venue_name"),
                "organizer_id": organizer["uid"],
                "organizer_name": organizer.get("full_name") or organizer.get("email", ""),
                "max_participants": int(data.get("max_participants") or 0),
                "current_participants": 0,
                "entry_fee": float(data.get("entry_fee") or 0),
                "prize_pool": float(data.get("prize_pool") or 0),
                "is_premium_listing": bool(data.get("is_premium_listing")),
                "images": image_urls,
                "pdf_document": pdf_url,
                "status": status,
                "admin_notes": "",
                "version": 1,
                "created_at": now,
                "updated_at": now,
            }
        )
        ref.set(payload)

        if status == STATUS_PENDING:
            TournamentService._notify_submitted(db, tournament_id, payload)
        return tournament_id

    @staticmethod
    def _notify_submitted(db: Client, tournament_id: str, data: dict[str, Any]) -> None:
        NotificationService.add_notification(
            {
                "type": n.TOURNAMENT_SUBMITTED,
                "title": "New Tournament Submitted",
                "message": f"{data.get('organizer_name')} submitted "
                f"\"{data.get('name')}\" for approval.",
                "target_role": "admin",
                "tournament_id": tournament_id,
                "tournament_name": data.get("name"),
            },
            db,
        )

    @staticmethod
    def _transition(
        db: Client,
        tournament_id: str,
        target: str,
        expected_version: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Move a tournament to ``target`` and return the updated record.

        Rejects moves the transition table does not allow and writes made
        against a stale ``expected_version``.
        """
        ref = db.collection(TOURNAMENTS).document(tournament_id)
        doc = ref.get()
        data = doc.to_dict() if doc.exists else None
        if not data:
            raise NotFoundError("Tournament not found.")

        current = data.get("status", STATUS_DRAFT)
        version = int(data.get("version", 1))
        if expected_version is not None and int(expected_version) != version:
            raise ConcurrentUpdateError()
        if not can_transition(current, target):
            raise InvalidTransitionError(current, target)

        changes = {"status": target, "updated_at": utcnow(), "version": version + 1}
        changes.update(extra or {})
        ref.update(changes)
        data.update(changes)
        data["id"] = tournament_id
        return data

    @staticmethod
    def _check_owner(data: dict[str, Any], organizer_uid: str) -> None:
        if data.get("organizer_id") != organizer_uid:
            raise PermissionDeniedError("Only the organizer can change this tournament.")

    @staticmethod
    def submit_draft(
        tournament_id: str, organizer_uid: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Send a draft (or a rejected tournament) to the admins for review."""
        if db is None:
            db = firestore.client()
        current = TournamentService.get_tournament(tournament_id, db)
        TournamentService._check_owner(current, organizer_uid)
        validate_schedule(current)
        data = TournamentService._transition(
            db, tournament_id, STATUS_PENDING, extra={"admin_notes": ""}
        )
        TournamentService._notify_submitted(db, tournament_id, data)
        return data

    @staticmethod
    def approve_tournament(
        tournament_id: str,
        expected_version: int | None = None,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Approve a pending tournament.

        Notifies the organizer and broadcasts the new listing to players.
        Approving twice raises InvalidTransitionError and sends nothing.
        """
        if db is None:
            db = firestore.client()
        data = TournamentService._transition(
            db, tournament_id, STATUS_APPROVED, expected_version
        )
        NotificationService.add_notification(
            {
                "type": n.TOURNAMENT_APPROVED,
                "title": "Tournament Approved!",
                "message": f"Your tournament \"{data.get('name')}\" has been approved "
                "and is now live.",
                "user_id": data.get("organizer_id"),
                "target_role": "organizer",
                "tournament_id": tournament_id,
                "tournament_name": data.get("name"),
            },
            db,
        )
        NotificationService.add_notification(
            {
                "type": n.NEW_TOURNAMENT_AVAILABLE,
                "title": "New Tournament Available!",
                "message": f"{data.get('name')} ({data.get('sport_type')}) is open for "
                f"registration in {data.get('district') or data.get('province')}.",
                "target_role": "player",
                "tournament_id": tournament_id,
                "tournament_name": data.get("name"),
            },
            db,
        )
        TournamentService._email_organizer(
            db,
            data,
            f"Approved: {data.get('name')}",
            "email/tournament_approved.html",
        )
        return data

    @staticmethod
    def reject_tournament(
        tournament_id: str,
        reason: str,
        expected_version: int | None = None,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Reject a pending tournament with a reason kept in admin_notes."""
        if db is None:
            db = firestore.client()
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required to reject a tournament.")
        data = TournamentService._transition(
            db,
            tournament_id,
            STATUS_REJECTED,
            expected_version,
            extra={"admin_notes": reason},
        )
        NotificationService.add_notification(
            {
                "type": n.TOURNAMENT_REJECTED,
                "title": "Tournament Rejected",
                "message": f"Your tournament \"{data.get('name')}\" was rejected. "
                f"Reason: {reason}",
                "user_id": data.get("organizer_id"),
                "target_role": "organizer",
                "tournament_id": tournament_id,
                "tournament_name": data.get("name"),
            },
            db,
        )
        TournamentService._email_organizer(
            db,
            data,
            f"Rejected: {data.get('name')}",
            "email/tournament_rejected.html",
            reason=reason,
        )
        return data

    @staticmethod
    def start_tournament(
        tournament_id: str, organizer_uid: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Mark an approved tournament as in progress."""
        if db is None:
            db = firestore.client()
        TournamentService._check_owner(
            TournamentService.get_tournament(tournament_id, db), organizer_uid
        )
        return TournamentService._transition(db, tournament_id, STATUS_ACTIVE)

    @staticmethod
    def complete_tournament(
        tournament_id: str, organizer_uid: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Mark a running tournament as finished."""
        if db is None:
            db = firestore.client()
        TournamentService._check_owner(
            TournamentService.get_tournament(tournament_id, db), organizer_uid
        )
        return TournamentService._transition(db, tournament_id, STATUS_COMPLETED)

    @staticmethod
    def cancel_tournament(
        tournament_id: str, organizer_uid: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Cancel an approved or running tournament."""
        if db is None:
            db = firestore.client()
        TournamentService._check_owner(
            TournamentService.get_tournament(tournament_id, db), organizer_uid
        )
        return TournamentService._transition(db, tournament_id, STATUS_CANCELLED)

    @staticmethod
    def update_tournament(
        tournament_id: str,
        organizer_uid: str,
        changes: dict[str, Any],
        expected_version: int | None = None,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Edit tournament details with ownership and version checks."""
        if db is None:
            db = firestore.client()
        ref = db.collection(TOURNAMENTS).document(tournament_id)
        current = TournamentService.get_tournament(tournament_id, db)
        TournamentService._check_owner(current, organizer_uid)

        version = int(current.get("version", 1))
        if expected_version is not None and int(expected_version) != version:
            raise ConcurrentUpdateError()
        if current.get("status") not in EDITABLE_STATUSES:
            raise ValidationError("Finished or cancelled tournaments cannot be edited.")

        update_data = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
        validate_schedule({**current, **update_data})
        if "max_participants" in update_data:
            update_data["max_participants"] = int(update_data["max_participants"])
            if update_data["max_participants"] < int(current.get("current_participants", 0)):
                raise ValidationError(
                    "Max participants cannot be lower than the current registrations."
                )
        if "venue_name" in update_data:
            update_data["facility_name"] = update_data["venue_name"]

        update_data.update({"updated_at": utcnow(), "version": version + 1})
        ref.update(update_data)
        current.update(update_data)
        return current

    @staticmethod
    def adjust_participants(
        tournament_id: str, delta: int, db: Client | None = None
    ) -> int:
        """Change ``current_participants`` by ``delta`` within 0..max."""
        if db is None:
            db = firestore.client()
        ref = db.collection(TOURNAMENTS).document(tournament_id)
        data = TournamentService.get_tournament(tournament_id, db)
        current = int(data.get("current_participants", 0))
        maximum = int(data.get("max_participants", 0))
        new_value = current + delta
        if delta > 0 and new_value > maximum:
            raise ValidationError("This tournament is full.")
        new_value = max(new_value, 0)
        ref.update({"current_participants": new_value, "updated_at": utcnow()})
        return new_value

    @staticmethod
    def _delete_where(db: Client, collection: str, field: str, value: Any) -> int:
        count = 0
        docs = (
            db.collection(collection)
            .where(filter=firestore.FieldFilter(field, "==", value))
            .stream()
        )
        for doc in docs:
            if doc.to_dict():
                db.collection(collection).document(doc.id).delete()
                count += 1
        return count

    @staticmethod
    def delete_tournament(tournament_id: str, db: Client | None = None) -> int:
        """Delete a tournament and everything that references it.

        Returns the number of registrations removed.
        """
        if db is None:
            db = firestore.client()
        data = TournamentService.get_tournament(tournament_id, db)

        removed = TournamentService._delete_where(
            db, REGISTRATIONS, "tournament_id", tournament_id
        )
        TournamentService._delete_where(db, PENDING_PAYMENTS, "tournament_id", tournament_id)
        TournamentService._delete_where(db, MATCHES, "tournament_id", tournament_id)
        NotificationService.delete_for_tournament(tournament_id, db)
        db.collection(TOURNAMENTS).document(tournament_id).delete()

        NotificationService.add_notification(
            {
                "type": n.TOURNAMENT_DELETED,
                "title": "Tournament Deleted",
                "message": f"Your tournament \"{data.get('name')}\" was removed by an "
                "administrator.",
                "user_id": data.get("organizer_id"),
                "target_role": "organizer",
                "tournament_id": tournament_id,
                "tournament_name": data.get("name"),
            },
            db,
        )
        current_app.logger.info(
            f"Deleted tournament {tournament_id} and {removed} registration(s)."
        )
        return removed

    @staticmethod
    def _email_organizer(
        db: Client, data: dict[str, Any], subject: str, template: str, **kwargs: Any
    ) -> None:
        """Best-effort email to the organizer; failures are only logged."""
        if not current_app.config.get("MAIL_USERNAME") or not data.get("organizer_id"):
            return
        try:
            user_doc = db.collection(USERS).document(data["organizer_id"]).get()
            user = user_doc.to_dict() if user_doc.exists else None
            if user and user.get("email"):
                send_email(
                    to=user["email"],
                    subject=subject,
                    template=template,
                    user=user,
                    tournament=data,
                    **kwargs,
                )
        except Exception as e:
            logger.error(f"Email failed: {e}")

