"""Routes for the registration blueprint."""

from __future__ import annotations

from typing import Any

from flask import flash, g, redirect, render_template, request, url_for

from khelkheleko.auth.decorators import login_required
from khelkheleko.constants import ROLE_PLAYER
from khelkheleko.errors import AppError
from khelkheleko.services.payment_service import PaymentService
from khelkheleko.services.registration_service import RegistrationService
from khelkheleko.services.tournament_service import TournamentService

from . import bp
from .forms import TournamentRegistrationForm


@bp.route("/tournament/<string:tournament_id>/register", methods=["GET", "POST"])
@login_required(roles=(ROLE_PLAYER,))
def register(tournament_id: str) -> Any:
    """Join a tournament, paying the entry fee through eSewa when there is one."""
    tournament = TournamentService.get_tournament(tournament_id)
    view_url = url_for("tournament.view_tournament", tournament_id=tournament_id)

    if RegistrationService.get_player_registration(tournament_id, g.user["uid"]):
        flash("You are already registered for this tournament.", "info")
        return redirect(view_url)
    closed = RegistrationService.registration_closed_reason(tournament)
    if closed:
        flash(closed, "warning")
        return redirect(view_url)

    form = TournamentRegistrationForm()
    if request.method == "GET":
        form.player_name.data = g.user.get("full_name")
        form.email.data = g.user.get("email")
        form.phone.data = g.user.get("phone")

    if form.validate_on_submit():
        try:
            RegistrationService.check_eligibility(tournament, g.user["uid"])
            registration = RegistrationService.build_registration(
                tournament, g.user["uid"], form.to_payload()
            )
            if float(tournament.get("entry_fee") or 0) > 0:
                pending = PaymentService.create_pending_payment(
                    tournament, g.user["uid"], registration
                )
                return redirect(
                    url_for(
                        "payment.checkout", transaction_uuid=pending["transaction_uuid"]
                    )
                )
            RegistrationService.save_registration(registration)
        except AppError as e:
            flash(e.message, "danger")
        else:
            flash(
                f"Registration successful! You are registered for {tournament['name']}.",
                "success",
            )
            return redirect(url_for("player.dashboard"))

    return render_template(
        "registration/register.html", form=form, tournament=tournament
    )
