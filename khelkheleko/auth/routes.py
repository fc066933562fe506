"""Routes for the auth blueprint."""

from __future__ import annotations

from typing import Any

from flask import (
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

from khelkheleko.constants import ROLE_ADMIN, ROLE_ORGANIZER
from khelkheleko.errors import AppError, AuthenticationError, NotFoundError
from khelkheleko.extensions import csrf

from . import bp
from .forms import LoginForm, RegisterForm
from .services import AuthService


def _start_session(user: dict[str, Any]) -> None:
    session.clear()
    session["user_id"] = user["uid"]
    session["role"] = user.get("role", "player")


def _home_for(role: str) -> str:
    if role == ROLE_ADMIN:
        return url_for("admin.dashboard")
    if role == ROLE_ORGANIZER:
        return url_for("organizer.dashboard")
    return url_for("player.dashboard")


@bp.route("/register", methods=["GET", "POST"])
def register() -> Any:
    """Create a player or organizer account."""
    form = RegisterForm()
    if form.validate_on_submit():
        try:
            AuthService.register_user(
                full_name=form.full_name.data,
                email=form.email.data,
                password=form.password.data,
                role=form.role.data,
                phone=form.phone.data,
            )
            flash("Registration successful! You can now log in.", "success")
            return redirect(url_for(".login"))
        except AppError as e:
            flash(e.message, "danger")
        except Exception as e:
            current_app.logger.error(f"Error during registration: {e}")
            flash("An unexpected error occurred during registration.", "danger")

    return render_template("auth/register.html", form=form)


@bp.route("/login", methods=["GET", "POST"])
def login() -> Any:
    """Sign in with email and password."""
    form = LoginForm()
    if form.validate_on_submit():
        try:
            user = AuthService.authenticate(form.email.data, form.password.data)
        except AppError as e:
            flash(e.message, "danger")
        else:
            _start_session(user)
            flash("Welcome back!", "success")
            next_url = request.args.get("next")
            if next_url and next_url.startswith("/") and not next_url.startswith("//"):
                return redirect(next_url)
            return redirect(_home_for(session["role"]))

    return render_template("auth/login.html", form=form)


@bp.route("/session_login", methods=["POST"])
@csrf.exempt
def session_login() -> Any:
    """
    Called from the client-side after a successful Firebase login.
    It receives the ID token, verifies it, and creates a server-side session.
    """
    id_token = (request.get_json(silent=True) or {}).get("idToken")
    if not id_token:
        return jsonify({"status": "error", "message": "Missing idToken."}), 400
    try:
        user = AuthService.user_from_id_token(id_token)
    except NotFoundError as e:
        return jsonify({"status": "error", "message": e.message}), 404
    except AuthenticationError as e:
        current_app.logger.warning(f"Rejected session login: {e.message}")
        return jsonify({"status": "error", "message": e.message}), 401

    _start_session(user)
    return jsonify({"status": "success", "redirect": _home_for(session["role"])})


@bp.route("/logout")
def logout() -> Any:
    """Clear the server-side session."""
    session.clear()
    flash("You have been logged out.", "success")
    return redirect(url_for("main.index"))
