"""Routes for the player blueprint."""

from __future__ import annotations

from typing import Any

from flask import flash, g, redirect, render_template, request, url_for

from khelkheleko.auth.decorators import login_required
from khelkheleko.constants import ROLE_PLAYER
from khelkheleko.errors import AppError
from khelkheleko.notification.services import NotificationService
from khelkheleko.services.registration_service import RegistrationService
from khelkheleko.utils import parse_date

from . import bp
from .forms import ProfileForm
from .services import AchievementService, PlayerStatsService, ProfileService


@bp.route("/player-dashboard")
@login_required(roles=(ROLE_PLAYER,))
def dashboard() -> Any:
    """Registrations, stats, achievements and notifications for a player."""
    uid = g.user["uid"]
    stats = PlayerStatsService.get_player_stats(uid)
    results = PlayerStatsService.get_stats(uid)
    played_sports = sorted({r.get("sport_type") for r in results if r.get("sport_type")})
    return render_template(
        "player/dashboard.html",
        registrations=RegistrationService.list_for_player(uid),
        stats=stats,
        results=results,
        sport_stats={s: PlayerStatsService.get_sport_stats(uid, s) for s in played_sports},
        achievements=AchievementService.list_for_player(uid),
        notifications=NotificationService.list_for_viewer(g.user)[:10],
        profile=ProfileService.get_player_profile(uid),
    )


@bp.route("/player/profile", methods=["GET", "POST"])
@login_required(roles=(ROLE_PLAYER,))
def edit_profile() -> Any:
    """Edit the player's profile and privacy settings."""
    uid = g.user["uid"]
    profile = ProfileService.get_player_profile(uid) or {}
    form = ProfileForm()
    if form.validate_on_submit():
        try:
            ProfileService.update_player_profile(uid, form.to_payload())
        except AppError as e:
            flash(e.message, "danger")
        else:
            flash("Profile updated successfully.", "success")
            return redirect(url_for(".dashboard"))
    elif request.method == "GET" and profile:
        for name in (
            "bio",
            "favorite_sports",
            "skill_level",
            "location",
            "height",
            "weight",
            "preferred_position",
        ):
            getattr(form, name).data = profile.get(name)
        form.date_of_birth.data = parse_date(profile.get("date_of_birth"))
        for name, url in (profile.get("social_links") or {}).items():
            if hasattr(form, name):
                getattr(form, name).data = url
        for name, value in (profile.get("privacy_settings") or {}).items():
            if hasattr(form, name):
                getattr(form, name).data = value

    return render_template("player/profile.html", form=form)
