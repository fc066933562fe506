"""Admin routes for the application."""

from __future__ import annotations

from typing import Any

from flask import abort, current_app, flash, redirect, render_template, request, url_for

from khelkheleko.auth.decorators import login_required
from khelkheleko.constants import ROLE_ADMIN, TOURNAMENT_STATUSES
from khelkheleko.errors import AppError
from khelkheleko.services.tournament_service import TournamentService

from . import bp
from .forms import ApproveTournamentForm, RejectTournamentForm, SeedDataForm
from .services import AdminService


def _version(form: Any) -> int | None:
    return int(form.version.data) if form.version.data else None


@bp.route("/")
@login_required(roles=(ROLE_ADMIN,))
def dashboard() -> Any:
    """Review queue and platform overview."""
    tournaments = TournamentService.list_all()
    status = request.args.get("status")
    if status not in TOURNAMENT_STATUSES:
        status = None
    shown = [t for t in tournaments if t.get("status") == status] if status else tournaments
    stats = AdminService.get_admin_stats(
        tournaments, current_app.config["PLATFORM_COMMISSION_RATE"]
    )
    return render_template(
        "admin/dashboard.html",
        tournaments=shown,
        stats=stats,
        status=status,
        statuses=TOURNAMENT_STATUSES,
        approve_form=ApproveTournamentForm(),
        reject_form=RejectTournamentForm(),
        seed_form=SeedDataForm(),
    )


@bp.route("/tournaments/<string:tournament_id>/approve", methods=["POST"])
@login_required(roles=(ROLE_ADMIN,))
def approve(tournament_id: str) -> Any:
    """Approve a pending tournament."""
    form = ApproveTournamentForm()
    if not form.validate_on_submit():
        flash("Invalid request.", "danger")
        return redirect(url_for(".dashboard"))
    try:
        tournament = TournamentService.approve_tournament(
            tournament_id, expected_version=_version(form)
        )
    except AppError as e:
        flash(e.message, "danger")
    else:
        flash(
            f"Tournament \"{tournament['name']}\" has been approved and is now live!",
            "success",
        )
    return redirect(request.referrer or url_for(".dashboard"))


@bp.route("/tournaments/<string:tournament_id>/reject", methods=["POST"])
@login_required(roles=(ROLE_ADMIN,))
def reject(tournament_id: str) -> Any:
    """Reject a pending tournament with a reason."""
    form = RejectTournamentForm()
    if not form.validate_on_submit():
        for error in form.reason.errors:
            flash(error, "danger")
        return redirect(request.referrer or url_for(".dashboard"))
    try:
        tournament = TournamentService.reject_tournament(
            tournament_id, form.reason.data, expected_version=_version(form)
        )
    except AppError as e:
        flash(e.message, "danger")
    else:
        flash(f"Tournament \"{tournament['name']}\" has been rejected.", "info")
    return redirect(request.referrer or url_for(".dashboard"))


@bp.route("/tournaments/<string:tournament_id>/delete", methods=["POST"])
@login_required(roles=(ROLE_ADMIN,))
def delete(tournament_id: str) -> Any:
    """Delete a tournament and its registrations."""
    try:
        removed = TournamentService.delete_tournament(tournament_id)
    except AppError as e:
        flash(e.message, "danger")
    else:
        flash(
            f"Tournament deleted along with {removed} registration(s).", "success"
        )
    return redirect(url_for(".dashboard"))


@bp.route("/seed", methods=["POST"])
@login_required(roles=(ROLE_ADMIN,))
def seed() -> Any:
    """Generate demo data, when enabled for this deployment."""
    if not current_app.config.get("ENABLE_DEMO_SEED"):
        abort(404)
    form = SeedDataForm()
    if not form.validate_on_submit():
        flash("Choose between 1 and 25 tournaments.", "danger")
        return redirect(url_for(".dashboard"))
    try:
        created = AdminService.seed_demo_data(form.tournaments.data)
    except AppError as e:
        flash(e.message, "danger")
    else:
        current_app.logger.info(f"Seeded demo data: {created}")
        flash(
            f"Created {created['tournaments']} tournaments, {created['users']} users "
            f"and {created['registrations']} registrations.",
            "success",
        )
    return redirect(url_for(".dashboard"))
