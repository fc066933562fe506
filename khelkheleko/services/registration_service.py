"""Service layer for tournament registrations."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore
from flask import current_app

from khelkheleko.constants import (
    PAYMENT_COMPLETED,
    PAYMENT_NOT_REQUIRED,
    PAYMENT_PENDING,
    REG_CONFIRMED,
    REG_REGISTERED,
    REG_REJECTED,
    REGISTRATIONS,
    STATUS_APPROVED,
)
from khelkheleko.core.models import Registration
from khelkheleko.errors import (
    ConcurrentUpdateError,
    DuplicateResourceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from khelkheleko.notification import models as n
from khelkheleko.notification.services import NotificationService
from khelkheleko.utils import epoch_millis, parse_date, send_email, utcnow

from .tournament_service import TournamentService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

REGISTRATION_STATUSES = (REG_REGISTERED, REG_CONFIRMED, REG_REJECTED)


class RegistrationService:
    """Handles registration records and their confirmation sub-state."""

    @staticmethod
    def _stream(db: Client, field: str, value: Any) -> list[Registration]:
        docs = (
            db.collection(REGISTRATIONS)
            .where(filter=firestore.FieldFilter(field, "==", value))
            .stream()
        )
        results = []
        for doc in docs:
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                results.append(data)
        results.sort(key=lambda r: r.get("registration_date") or utcnow(), reverse=True)
        return results

    @staticmethod
    def list_for_player(player_uid: str, db: Client | None = None) -> list[Registration]:
        """A player's registrations, newest first."""
        if db is None:
            db = firestore.client()
        return RegistrationService._stream(db, "player_id", player_uid)

    @staticmethod
    def list_for_organizer(
        organizer_uid: str, db: Client | None = None
    ) -> list[Registration]:
        """Registrations across all of an organizer's tournaments."""
        if db is None:
            db = firestore.client()
        return RegistrationService._stream(db, "organizer_id", organizer_uid)

    @staticmethod
    def list_for_tournament(
        tournament_id: str, db: Client | None = None
    ) -> list[Registration]:
        """Registrations for one tournament."""
        if db is None:
            db = firestore.client()
        return RegistrationService._stream(db, "tournament_id", tournament_id)

    @staticmethod
    def get_player_registration(
        tournament_id: str, player_uid: str, db: Client | None = None
    ) -> Registration | None:
        """The player's live (not rejected) registration for a tournament."""
        if db is None:
            db = firestore.client()
        for reg in RegistrationService._stream(db, "player_id", player_uid):
            if reg.get("tournament_id") == tournament_id and reg.get("status") != REG_REJECTED:
                return reg
        return None

    @staticmethod
    def registration_closed_reason(tournament: dict[str, Any]) -> str | None:
        """Why a tournament cannot take registrations right now, if it cannot."""
        if tournament.get("status") != STATUS_APPROVED:
            return "This tournament is not open for registration."
        deadline = parse_date(tournament.get("registration_deadline"))
        if deadline and deadline < utcnow().date():
            return "The registration deadline has passed."
        if int(tournament.get("current_participants", 0)) >= int(
            tournament.get("max_participants", 0)
        ):
            return "This tournament is full."
        return None

    @staticmethod
    def check_eligibility(
        tournament: dict[str, Any], player_uid: str, db: Client | None = None
    ) -> None:
        """Raise if the player may not register for ``tournament``."""
        if db is None:
            db = firestore.client()
        reason = RegistrationService.registration_closed_reason(tournament)
        if reason:
            raise ValidationError(reason)
        if RegistrationService.get_player_registration(tournament["id"], player_uid, db):
            raise DuplicateResourceError("You are already registered for this tournament.")

    @staticmethod
    def build_registration(
        tournament: dict[str, Any], player_uid: str, details: dict[str, Any]
    ) -> Registration:
        """Assemble an unsaved registration record."""
        return {
            "id": f"reg_{epoch_millis()}_{uuid.uuid4().hex[:4]}",
            "tournament_id": tournament["id"],
            "tournament_name": tournament.get("name", ""),
            "sport_type": tournament.get("sport_type", ""),
            "organizer_id": tournament.get("organizer_id", ""),
            "player_id": player_uid,
            "player_name": details.get("player_name", ""),
            "email": details.get("email", ""),
            "phone": details.get("phone", ""),
            "age": int(details.get("age") or 0),
            "experience_level": details.get("experience_level", ""),
            "team_name": details.get("team_name", ""),
            "emergency_contact": details.get("emergency_contact", ""),
            "medical_conditions": details.get("medical_conditions", ""),
            "status": REG_REGISTERED,
            "entry_fee_paid": False,
            "payment_status": PAYMENT_PENDING,
            "transaction_id": None,
            "version": 1,
        }

    @staticmethod
    def save_registration(
        registration: Registration,
        transaction_id: str | None = None,
        amount_paid: float = 0.0,
        db: Client | None = None,
    ) -> Registration:
        """Persist a registration and take a participant slot.

        Free registrations are stored unpaid; paid ones carry the verified
        transaction id. A player holds at most one live registration per
        tournament.
        """
        if db is None:
            db = firestore.client()
        if RegistrationService.get_player_registration(
            registration["tournament_id"], registration["player_id"], db
        ):
            raise DuplicateResourceError("You are already registered for this tournament.")
        TournamentService.adjust_participants(registration["tournament_id"], 1, db)

        record: Registration = dict(registration)  # type: ignore[assignment]
        record["registration_date"] = utcnow()
        if transaction_id:
            record["entry_fee_paid"] = True
            record["payment_status"] = PAYMENT_COMPLETED
            record["transaction_id"] = transaction_id
            record["amount_paid"] = float(amount_paid)
        else:
            record["payment_status"] = PAYMENT_NOT_REQUIRED
        db.collection(REGISTRATIONS).document(record["id"]).set(dict(record))

        title = "Payment Successful!" if transaction_id else "Registration Successful!"
        NotificationService.add_notification(
            {
                "type": n.REGISTRATION_SUCCESS,
                "title": title,
                "message": f"You are registered for {record['tournament_name']}.",
                "user_id": record["player_id"],
                "target_role": "player",
                "tournament_id": record["tournament_id"],
                "tournament_name": record["tournament_name"],
            },
            db,
        )
        return record

    @staticmethod
    def get_registration(registration_id: str, db: Client | None = None) -> Registration:
        """Fetch a registration or raise NotFoundError."""
        if db is None:
            db = firestore.client()
        doc = db.collection(REGISTRATIONS).document(registration_id).get()
        data = doc.to_dict() if doc.exists else None
        if not data:
            raise NotFoundError("Registration not found.")
        data["id"] = registration_id
        return data

    @staticmethod
    def set_status(
        registration_id: str,
        organizer_uid: str,
        status: str,
        expected_version: int | None = None,
        db: Client | None = None,
    ) -> Registration:
        """Confirm, reject or restore a registration and tell the player."""
        if db is None:
            db = firestore.client()
        if status not in REGISTRATION_STATUSES:
            raise ValidationError(f"Unknown registration status: {status}")

        reg = RegistrationService.get_registration(registration_id, db)
        if reg.get("organizer_id") != organizer_uid:
            raise PermissionDeniedError("Only the organizer can manage this registration.")
        version = int(reg.get("version", 1))
        if expected_version is not None and int(expected_version) != version:
            raise ConcurrentUpdateError()
        previous = reg.get("status")
        if previous == status:
            raise ValidationError(f"Registration is already {status}.")

        if status == REG_REJECTED:
            TournamentService.adjust_participants(reg["tournament_id"], -1, db)
        elif previous == REG_REJECTED:
            if RegistrationService.get_player_registration(
                reg["tournament_id"], reg["player_id"], db
            ):
                raise DuplicateResourceError(
                    f"{reg['player_name']} already holds another registration "
                    "for this tournament."
                )
            TournamentService.adjust_participants(reg["tournament_id"], 1, db)

        changes = {"status": status, "version": version + 1, "updated_at": utcnow()}
        db.collection(REGISTRATIONS).document(registration_id).update(changes)
        reg.update(changes)

        if status == REG_REJECTED:
            payload = {
                "type": n.REGISTRATION_REJECTED,
                "title": "Registration Rejected",
                "message": f"Your registration for {reg['tournament_name']} was not accepted.",
            }
        elif status == REG_CONFIRMED:
            payload = {
                "type": n.REGISTRATION_SUCCESS,
                "title": "Registration Confirmed!",
                "message": f"Your spot in {reg['tournament_name']} is confirmed.",
            }
        else:
            payload = {
                "type": n.REGISTRATION_SUCCESS,
                "title": "Registration Restored",
                "message": f"Your registration for {reg['tournament_name']} is active again.",
            }
        payload.update(
            {
                "user_id": reg["player_id"],
                "target_role": "player",
                "tournament_id": reg["tournament_id"],
                "tournament_name": reg["tournament_name"],
            }
        )
        NotificationService.add_notification(payload, db)
        RegistrationService._email_player(reg, payload["title"])
        return reg

    @staticmethod
    def _email_player(reg: Registration, subject: str) -> None:
        """Best-effort status email; failures are only logged."""
        if not current_app.config.get("MAIL_USERNAME") or not reg.get("email"):
            return
        try:
            send_email(
                to=reg["email"],
                subject=f"{subject} {reg['tournament_name']}",
                template="email/registration_status.html",
                registration=reg,
                headline=subject,
            )
        except Exception as e:
            logger.error(f"Email failed: {e}")
