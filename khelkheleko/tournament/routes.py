"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from flask import (
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
from khelkheleko.constants import (
    ROLE_ADMIN,
    ROLE_ORGANIZER,
    STATUS_ACTIVE,
    STATUS_APPROVED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
)
from khelkheleko.errors import AppError
from khelkheleko.fees.calculator import calculate_platform_fees
from khelkheleko.services.bracket import BracketService
from khelkheleko.services.registration_service import RegistrationService
from khelkheleko.services.tournament_service import TournamentService
from khelkheleko.utils import parse_date

from . import bp
from .forms import MatchResultForm, TournamentForm

PUBLIC_STATUSES = (STATUS_APPROVED, STATUS_ACTIVE, STATUS_COMPLETED, STATUS_CANCELLED)


def _can_manage(tournament: dict[str, Any]) -> bool:
    return bool(g.user) and tournament.get("organizer_id") == g.user["uid"]


def _load_form(form: TournamentForm, tournament: dict[str, Any]) -> None:
    """Fill an edit form from a stored tournament."""
    for name in (
        "name",
        "description",
        "sport_type",
        "tournament_type",
        "max_participants",
        "entry_fee",
        "prize_pool",
        "venue_name",
        "venue_address",
        "province",
        "district",
        "latitude",
        "longitude",
        "rules",
        "requirements",
        "contact_phone",
        "contact_email",
        "is_premium_listing",
    ):
        getattr(form, name).data = tournament.get(name)
    for name in ("start_date", "end_date", "registration_deadline"):
        getattr(form, name).data = parse_date(tournament.get(name))
    form.version.data = str(tournament.get("version", 1))


@bp.route("/create-tournament", methods=["GET", "POST"])
@login_required(roles=(ROLE_ORGANIZER, ROLE_ADMIN))
def create_tournament() -> Any:
    """Submit a new tournament for admin review, or save it as a draft."""
    form = TournamentForm()
    if form.validate_on_submit():
        as_draft = "save_draft" in request.form
        try:
            tournament_id = TournamentService.submit_tournament(
                form.to_payload(),
                dict(g.user),
                as_draft=as_draft,
                images=[f for f in (form.images.data or []) if getattr(f, "filename", None)],
                pdf_document=form.pdf_document.data,
            )
        except AppError as e:
            flash(e.message, "danger")
        else:
            if as_draft:
                flash("Tournament saved as a draft.", "info")
            else:
                flash(
                    "Tournament submitted for approval! You will be notified once it "
                    "is reviewed.",
                    "success",
                )
            return redirect(url_for(".view_tournament", tournament_id=tournament_id))

    return render_template("tournament/create_tournament.html", form=form)


@bp.route("/tournament/<string:tournament_id>", methods=["GET"])
def view_tournament(tournament_id: str) -> Any:
    """Show a tournament with its bracket."""
    tournament = TournamentService.get_tournament(tournament_id)

    is_owner = _can_manage(tournament)
    is_admin = bool(g.user) and g.user.role == ROLE_ADMIN
    if tournament.get("status") not in PUBLIC_STATUSES and not (is_owner or is_admin):
        abort(404)

    registration = None
    if g.user:
        registration = RegistrationService.get_player_registration(
            tournament_id, g.user["uid"]
        )

    registrations = []
    fees = None
    if is_owner or is_admin:
        registrations = RegistrationService.list_for_tournament(tournament_id)
        fees = calculate_platform_fees(
            tournament.get("entry_fee", 0),
            tournament.get("current_participants", 0),
            current_app.config["PLATFORM_COMMISSION_RATE"],
            bool(tournament.get("is_premium_listing")),
        )

    return render_template(
        "tournament/view_tournament.html",
        tournament=tournament,
        bracket=BracketService.get_bracket(tournament_id),
        registration=registration,
        registrations=registrations,
        closed_reason=RegistrationService.registration_closed_reason(tournament),
        is_owner=is_owner,
        is_admin=is_admin,
        fees=fees,
        result_form=MatchResultForm(),
    )


@bp.route("/tournament/<string:tournament_id>/edit", methods=["GET", "POST"])
@login_required(roles=(ROLE_ORGANIZER, ROLE_ADMIN))
def edit_tournament(tournament_id: str) -> Any:
    """Edit a tournament the current organizer owns."""
    try:
        tournament = TournamentService.get_tournament(tournament_id)
    except AppError as e:
        flash(e.message, "danger")
        return redirect(url_for("organizer.dashboard"))
    if not _can_manage(tournament):
        flash("Only the organizer can edit this tournament.", "danger")
        return redirect(url_for(".view_tournament", tournament_id=tournament_id))

    form = TournamentForm()
    if form.validate_on_submit():
        try:
            TournamentService.update_tournament(
                tournament_id,
                g.user["uid"],
                form.to_payload(),
                expected_version=int(form.version.data or 0) or None,
            )
        except AppError as e:
            flash(e.message, "danger")
        else:
            flash("Tournament updated.", "success")
            return redirect(url_for(".view_tournament", tournament_id=tournament_id))
    elif request.method == "GET":
        _load_form(form, tournament)

    return render_template(
        "tournament/edit_tournament.html", form=form, tournament=tournament
    )


@bp.route("/tournament/<string:tournament_id>/bracket/seed", methods=["POST"])
@login_required(roles=(ROLE_ORGANIZER, ROLE_ADMIN))
def seed_bracket(tournament_id: str) -> Any:
    """Draw the first round from the confirmed registrations."""
    try:
        first_round = BracketService.seed_first_round(tournament_id, g.user["uid"])
    except AppError as e:
        flash(e.message, "danger")
    else:
        flash(f"Bracket drawn with {len(first_round)} first-round match(es).", "success")
    return redirect(url_for(".view_tournament", tournament_id=tournament_id))


@bp.route(
    "/tournament/<string:tournament_id>/matches/<string:match_id>", methods=["POST"]
)
@login_required(roles=(ROLE_ORGANIZER, ROLE_ADMIN))
def record_result(tournament_id: str, match_id: str) -> Any:
    """Record a match winner and advance them."""
    form = MatchResultForm()
    if not form.validate_on_submit():
        flash("Choose the winner of the match.", "danger")
        return redirect(url_for(".view_tournament", tournament_id=tournament_id))
    try:
        BracketService.record_match_result(
            tournament_id,
            match_id,
            form.winner_id.data,
            form.score.data or None,
            g.user["uid"],
        )
    except AppError as e:
        flash(e.message, "danger")
    else:
        flash("Result recorded.", "success")
    return redirect(url_for(".view_tournament", tournament_id=tournament_id))
