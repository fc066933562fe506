"""Routes for the organizer blueprint."""

from __future__ import annotations

from typing import Any

from flask import (
    Response,
    current_app,
    flash,
    g,
    redirect,
    render_template,
    request,
    url_for,
)

from khelkheleko.auth.decorators import login_required
from khelkheleko.constants import REG_REJECTED, ROLE_ADMIN, ROLE_ORGANIZER
from khelkheleko.errors import AppError, PermissionDeniedError
from khelkheleko.player.services import PlayerStatsService
from khelkheleko.services.registration_service import RegistrationService
from khelkheleko.services.tournament_service import TournamentService

from . import bp
from .forms import RegistrationStatusForm, TournamentResultForm
from .services import OrganizerService

ORGANIZER_ROLES = (ROLE_ORGANIZER, ROLE_ADMIN)

LIFECYCLE_ACTIONS = {
    "submit": (TournamentService.submit_draft, "Tournament submitted for approval."),
    "start": (TournamentService.start_tournament, "Tournament started."),
    "complete": (TournamentService.complete_tournament, "Tournament marked as completed."),
    "cancel": (TournamentService.cancel_tournament, "Tournament cancelled."),
}


def _owned_tournament(tournament_id: str) -> dict[str, Any]:
    tournament = TournamentService.get_tournament(tournament_id)
    if tournament.get("organizer_id") != g.user["uid"]:
        raise PermissionDeniedError("You do not organize this tournament.")
    return tournament


@bp.route("/organizer-dashboard")
@login_required(roles=ORGANIZER_ROLES)
def dashboard() -> Any:
    """Tournaments, registrations and revenue for the current organizer."""
    uid = g.user["uid"]
    tournaments = TournamentService.list_for_organizer(uid)
    registrations = RegistrationService.list_for_organizer(uid)
    summary = OrganizerService.dashboard_summary(
        tournaments, current_app.config["PLATFORM_COMMISSION_RATE"]
    )
    return render_template(
        "organizer/dashboard.html",
        tournaments=tournaments,
        registrations=registrations,
        summary=summary,
        status_form=RegistrationStatusForm(),
    )


@bp.route("/organizer/tournaments/<string:tournament_id>/<string:action>", methods=["POST"])
@login_required(roles=ORGANIZER_ROLES)
def tournament_action(tournament_id: str, action: str) -> Any:
    """Move one of the organizer's tournaments through its lifecycle."""
    if action not in LIFECYCLE_ACTIONS:
        flash("Unknown action.", "danger")
        return redirect(url_for(".dashboard"))
    handler, message = LIFECYCLE_ACTIONS[action]
    try:
        handler(tournament_id, g.user["uid"])
    except AppError as e:
        flash(e.message, "danger")
    else:
        flash(message, "success")
    return redirect(request.referrer or url_for(".dashboard"))


@bp.route("/organizer/registrations/<string:registration_id>/status", methods=["POST"])
@login_required(roles=ORGANIZER_ROLES)
def registration_status(registration_id: str) -> Any:
    """Confirm, reject or restore a registration."""
    form = RegistrationStatusForm()
    if not form.validate_on_submit():
        flash("Invalid registration action.", "danger")
        return redirect(request.referrer or url_for(".dashboard"))
    try:
        reg = RegistrationService.set_status(
            registration_id,
            g.user["uid"],
            form.status.data,
            expected_version=int(form.version.data) if form.version.data else None,
        )
    except AppError as e:
        flash(e.message, "danger")
    else:
        if reg["status"] == REG_REJECTED:
            flash(f"Registration for {reg['player_name']} rejected.", "info")
        else:
            flash(f"Registration for {reg['player_name']} is now {reg['status']}.", "success")
    return redirect(request.referrer or url_for(".dashboard"))


@bp.route("/organizer/tournaments/<string:tournament_id>/registrations.csv")
@login_required(roles=ORGANIZER_ROLES)
def export_registrations(tournament_id: str) -> Any:
    """Download a tournament's registrations as CSV."""
    tournament = _owned_tournament(tournament_id)
    registrations = RegistrationService.list_for_tournament(tournament_id)
    current_app.logger.info(
        f"Exporting {len(registrations)} registration(s) for {tournament_id}"
    )
    return Response(
        OrganizerService.registrations_csv(registrations),
        mimetype="text/csv",
        headers={
            "Content-Disposition": "attachment; filename="
            f"{tournament.get('name', tournament_id).replace(' ', '_')}_registrations.csv"
        },
    )


@bp.route(
    "/organizer/tournaments/<string:tournament_id>/results", methods=["GET", "POST"]
)
@login_required(roles=ORGANIZER_ROLES)
def record_results(tournament_id: str) -> Any:
    """Record per-player results, which feed player stats and achievements."""
    tournament = _owned_tournament(tournament_id)
    registrations = [
        r
        for r in RegistrationService.list_for_tournament(tournament_id)
        if r.get("status") != REG_REJECTED
    ]
    form = TournamentResultForm()
    form.player_id.choices = [(r["player_id"], r["player_name"]) for r in registrations]

    if form.validate_on_submit():
        try:
            _, awarded = PlayerStatsService.add_tournament_result(
                player_id=form.player_id.data,
                tournament_id=tournament_id,
                tournament_name=tournament.get("name", ""),
                sport_type=tournament.get("sport_type", ""),
                matches_played=form.matches_played.data,
                matches_won=form.matches_won.data,
                hours_played=form.hours_played.data or 0,
                position=form.position.data,
                performance_rating=form.performance_rating.data or 0,
            )
        except AppError as e:
            flash(e.message, "danger")
        else:
            flash("Result recorded.", "success")
            for achievement in awarded:
                flash(f"Achievement unlocked: {achievement['title']}", "info")
            return redirect(url_for(".record_results", tournament_id=tournament_id))

    return render_template(
        "organizer/results.html",
        tournament=tournament,
        form=form,
        registrations=registrations,
    )
