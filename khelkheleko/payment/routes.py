"""Routes for the eSewa checkout and its callbacks."""

from __future__ import annotations

from typing import Any

from flask import (
    Response,
    abort,
    current_app,
    flash,
    g,
    redirect,
    render_template,
    request,
    url_for,
)

from khelkheleko.auth.decorators import login_required
from khelkheleko.errors import (
    AppError,
    PaymentPendingError,
    PaymentVerificationError,
    PermissionDeniedError,
)
from khelkheleko.services import esewa
from khelkheleko.services.payment_service import STATE_PENDING, PaymentService
from khelkheleko.services.registration_service import RegistrationService
from khelkheleko.utils import format_npr

from . import bp


def _own_pending(transaction_uuid: str) -> dict[str, Any]:
    pending = PaymentService.get_pending(transaction_uuid)
    if pending.get("user_id") != g.user["uid"]:
        raise PermissionDeniedError("This payment belongs to another account.")
    return pending


def _transaction_of(data: str) -> str | None:
    """The transaction id named in a callback payload, if it can be read."""
    try:
        return esewa.decode_callback(data).get("transaction_uuid")
    except PaymentVerificationError:
        return None


@bp.route("/checkout/<string:transaction_uuid>")
@login_required
def checkout(transaction_uuid: str) -> Any:
    """Hand the player over to eSewa with a signed form."""
    pending = _own_pending(transaction_uuid)
    if pending["state"] != STATE_PENDING:
        flash("This payment has already been processed.", "info")
        return redirect(url_for("player.dashboard"))

    if current_app.config.get("ESEWA_SIMULATE"):
        return redirect(url_for(".simulate", transaction_uuid=transaction_uuid))

    fields = PaymentService.checkout_form(
        pending,
        success_url=url_for(".success", _external=True),
        failure_url=url_for(
            ".failure", transaction_uuid=transaction_uuid, _external=True
        ),
    )
    return render_template(
        "payment/checkout.html",
        pending=pending,
        fields=fields,
        form_url=current_app.config["ESEWA_FORM_URL"],
    )


@bp.route("/simulate/<string:transaction_uuid>")
@login_required
def simulate(transaction_uuid: str) -> Any:
    """Local stand-in for the eSewa page, for development and demos."""
    if not current_app.config.get("ESEWA_SIMULATE"):
        abort(404)
    pending = _own_pending(transaction_uuid)
    return render_template(
        "payment/simulate.html",
        pending=pending,
        delay=current_app.config["ESEWA_SIMULATION_DELAY"],
    )


@bp.route("/simulate/<string:transaction_uuid>/complete")
@login_required
def simulate_complete(transaction_uuid: str) -> Any:
    """Finish a simulated payment by redirecting with a signed success payload."""
    if not current_app.config.get("ESEWA_SIMULATE"):
        abort(404)
    pending = _own_pending(transaction_uuid)
    return redirect(
        url_for(".success", data=PaymentService.simulated_callback(pending))
    )


@bp.route("/success")
@login_required
def success() -> Any:
    """Verify eSewa's callback and store the registration."""
    data = request.args.get("data", "")
    try:
        registration = PaymentService.complete_payment(data, player_uid=g.user["uid"])
    except PaymentPendingError as e:
        flash(e.message, "warning")
        return render_template(
            "payment/verifying.html",
            retry_url=url_for(".success", data=data),
            delay=current_app.config["ESEWA_STATUS_RETRY_DELAY"],
        )
    except AppError as e:
        current_app.logger.warning(f"Payment verification failed: {e.message}")
        flash(e.message, "danger")
        return redirect(url_for(".failure", transaction_uuid=_transaction_of(data)))

    flash(
        f"Payment Successful! You are registered for {registration['tournament_name']}.",
        "success",
    )
    return render_template("payment/success.html", registration=registration)


@bp.route("/failure")
@login_required
def failure() -> Any:
    """Show a failed or cancelled payment with a retry option."""
    pending = None
    transaction_uuid = request.args.get("transaction_uuid")
    if transaction_uuid:
        try:
            pending = PaymentService.fail_payment(
                transaction_uuid, reason="cancelled", player_uid=g.user["uid"]
            )
        except AppError as e:
            current_app.logger.warning(f"Unknown payment on failure page: {e.message}")
    return render_template("payment/failure.html", pending=pending)


@bp.route("/retry/<string:transaction_uuid>", methods=["POST"])
@login_required
def retry(transaction_uuid: str) -> Any:
    """Start a new checkout for a failed payment."""
    try:
        pending = PaymentService.retry_payment(transaction_uuid, g.user["uid"])
    except AppError as e:
        flash(e.message, "danger")
        return redirect(url_for("player.dashboard"))
    return redirect(url_for(".checkout", transaction_uuid=pending["transaction_uuid"]))


@bp.route("/receipt/<string:registration_id>")
@login_required
def receipt(registration_id: str) -> Any:
    """Download a plain-text receipt for a paid registration."""
    registration = RegistrationService.get_registration(registration_id)
    if registration.get("player_id") != g.user["uid"]:
        raise PermissionDeniedError("This receipt belongs to another account.")
    if not registration.get("entry_fee_paid"):
        flash("No payment was made for this registration.", "info")
        return redirect(url_for("player.dashboard"))

    paid_on = registration.get("registration_date")
    lines = [
        "Khel Kheleko - Payment Receipt",
        "",
        f"Tournament: {registration.get('tournament_name', '')}",
        f"Player: {registration.get('player_name', '')}",
        f"Amount: {format_npr(registration.get('amount_paid', 0))}",
        f"Transaction: {registration.get('transaction_id', '')}",
        f"Date: {paid_on.strftime('%Y-%m-%d %H:%M UTC') if paid_on else ''}",
        "Paid via eSewa",
    ]
    return Response(
        "\n".join(lines) + "\n",
        mimetype="text/plain",
        headers={
            "Content-Disposition": f"attachment; filename=receipt_{registration_id}.txt"
        },
    )
