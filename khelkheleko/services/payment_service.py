"""Service layer for paid registrations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore
from flask import current_app

from khelkheleko.constants import PENDING_PAYMENTS
from khelkheleko.errors import (
    AppError,
    NotFoundError,
    PaymentPendingError,
    PaymentVerificationError,
    PermissionDeniedError,
    ValidationError,
)
from khelkheleko.utils import utcnow

from . import esewa
from .registration_service import RegistrationService
from .tournament_service import TournamentService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

STATE_PENDING = "pending"
STATE_AUTHORIZED = "authorized"
STATE_CAPTURED = "captured"
STATE_FAILED = "failed"


class PaymentService:
    """Tracks a payment from checkout to a stored registration.

    States: pending -> authorized -> captured, or -> failed. A registration
    exists only once its payment is captured.
    """

    @staticmethod
    def create_pending_payment(
        tournament: dict[str, Any],
        player_uid: str,
        registration: dict[str, Any],
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Record a checkout the player is about to start."""
        if db is None:
            db = firestore.client()
        amount = float(tournament.get("entry_fee") or 0)
        if amount <= 0:
            raise ValidationError("This tournament does not require payment.")

        transaction_uuid = esewa.generate_transaction_uuid()
        pending = {
            "transaction_uuid": transaction_uuid,
            "tournament_id": tournament["id"],
            "tournament_name": tournament.get("name", ""),
            "user_id": player_uid,
            "amount": amount,
            "registration": dict(registration),
            "state": STATE_PENDING,
            "created_at": utcnow(),
            "updated_at": utcnow(),
        }
        db.collection(PENDING_PAYMENTS).document(transaction_uuid).set(pending)
        return pending

    @staticmethod
    def get_pending(transaction_uuid: str, db: Client | None = None) -> dict[str, Any]:
        """Fetch a pending payment or raise NotFoundError."""
        if db is None:
            db = firestore.client()
        doc = db.collection(PENDING_PAYMENTS).document(transaction_uuid).get()
        data = doc.to_dict() if doc.exists else None
        if not data:
            raise NotFoundError("Payment not found.")
        return data

    @staticmethod
    def checkout_form(
        pending: dict[str, Any], success_url: str, failure_url: str
    ) -> dict[str, str]:
        """Signed eSewa form fields for a pending payment."""
        config = current_app.config
        return esewa.build_payment_form(
            amount=pending["amount"],
            transaction_uuid=pending["transaction_uuid"],
            success_url=success_url,
            failure_url=failure_url,
            merchant_code=config["ESEWA_MERCHANT_CODE"],
            secret_key=config["ESEWA_SECRET_KEY"],
        )

    @staticmethod
    def simulated_callback(pending: dict[str, Any]) -> str:
        """Encoded success payload, signed exactly as the gateway would sign it."""
        config = current_app.config
        fields = esewa.build_callback(
            transaction_uuid=pending["transaction_uuid"],
            total_amount=pending["amount"],
            merchant_code=config["ESEWA_MERCHANT_CODE"],
            secret_key=config["ESEWA_SECRET_KEY"],
        )
        return esewa.encode_callback(fields)

    @staticmethod
    def _set_state(
        db: Client, transaction_uuid: str, state: str, **extra: Any
    ) -> None:
        db.collection(PENDING_PAYMENTS).document(transaction_uuid).update(
            {"state": state, "updated_at": utcnow(), **extra}
        )

    @staticmethod
    def complete_payment(
        data: str, player_uid: str | None = None, db: Client | None = None
    ) -> dict[str, Any]:
        """Verify a success callback and store the registration.

        Returns the registration. A repeated callback for a captured payment
        returns the stored registration without creating another. Raises
        PaymentPendingError, leaving the payment pending, while the status
        lookup has not confirmed it.
        """
        if db is None:
            db = firestore.client()
        config = current_app.config
        payload = esewa.decode_callback(data)
        transaction_uuid = str(payload.get("transaction_uuid") or "")
        pending = PaymentService.get_pending(transaction_uuid, db)

        if player_uid and pending.get("user_id") != player_uid:
            raise PermissionDeniedError("This payment belongs to another account.")

        if pending["state"] == STATE_CAPTURED:
            return RegistrationService.get_registration(pending["registration_id"], db)
        if pending["state"] == STATE_FAILED:
            raise PaymentVerificationError(
                "This payment has already failed. Please retry."
            )

        if not esewa.verify_callback(payload, config["ESEWA_SECRET_KEY"]):
            PaymentService._set_state(
                db, transaction_uuid, STATE_FAILED, reason="bad_signature"
            )
            current_app.logger.warning(
                f"Rejected payment callback for {transaction_uuid}: bad signature"
            )
            raise PaymentVerificationError("Payment signature mismatch.")
        if payload.get("status") != esewa.STATUS_COMPLETE:
            PaymentService._set_state(
                db, transaction_uuid, STATE_FAILED, reason=payload.get("status")
            )
            raise PaymentVerificationError("Payment was not completed.")
        paid = esewa.format_amount(payload.get("total_amount", 0))
        if paid != esewa.format_amount(pending["amount"]):
            PaymentService._set_state(
                db, transaction_uuid, STATE_FAILED, reason="amount_mismatch"
            )
            raise PaymentVerificationError("Paid amount does not match the entry fee.")

        if config.get("ESEWA_VERIFY_STATUS") and not config.get("ESEWA_SIMULATE"):
            status = esewa.check_transaction_status(
                config["ESEWA_STATUS_URL"],
                config["ESEWA_MERCHANT_CODE"],
                pending["amount"],
                transaction_uuid,
            )
            if status != esewa.STATUS_COMPLETE:
                current_app.logger.info(
                    f"Payment {transaction_uuid} awaiting confirmation: {status}"
                )
                raise PaymentPendingError(
                    "eSewa has not confirmed this payment yet. Please try again shortly."
                )

        transaction_code = str(payload.get("transaction_code") or transaction_uuid)
        PaymentService._set_state(
            db, transaction_uuid, STATE_AUTHORIZED, transaction_code=transaction_code
        )

        try:
            registration = RegistrationService.save_registration(
                pending["registration"],
                transaction_id=transaction_code,
                amount_paid=pending["amount"],
                db=db,
            )
        except AppError as e:
            PaymentService._set_state(db, transaction_uuid, STATE_FAILED, reason=e.message)
            current_app.logger.error(
                f"Payment {transaction_uuid} authorized but registration failed: {e.message}"
            )
            raise

        PaymentService._set_state(
            db, transaction_uuid, STATE_CAPTURED, registration_id=registration["id"]
        )
        current_app.logger.info(f"Payment {transaction_uuid} captured.")
        return registration

    @staticmethod
    def fail_payment(
        transaction_uuid: str,
        reason: str = "cancelled",
        player_uid: str | None = None,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Mark an unfinished payment as failed."""
        if db is None:
            db = firestore.client()
        pending = PaymentService.get_pending(transaction_uuid, db)
        if player_uid and pending.get("user_id") != player_uid:
            raise PermissionDeniedError("This payment belongs to another account.")
        if pending["state"] in (STATE_PENDING, STATE_AUTHORIZED):
            PaymentService._set_state(db, transaction_uuid, STATE_FAILED, reason=reason)
            pending["state"] = STATE_FAILED
        return pending

    @staticmethod
    def retry_payment(
        transaction_uuid: str, player_uid: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Start a fresh checkout from a failed one."""
        if db is None:
            db = firestore.client()
        previous = PaymentService.get_pending(transaction_uuid, db)
        if previous.get("user_id") != player_uid:
            raise PermissionDeniedError("This payment belongs to another account.")
        if previous["state"] != STATE_FAILED:
            raise ValidationError("Only failed payments can be retried.")

        tournament = TournamentService.get_tournament(previous["tournament_id"], db)
        RegistrationService.check_eligibility(tournament, player_uid, db)
        registration = RegistrationService.build_registration(
            tournament, player_uid, previous["registration"]
        )
        return PaymentService.create_pending_payment(tournament, player_uid, registration, db)
