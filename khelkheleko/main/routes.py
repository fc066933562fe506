"""Routes for the main blueprint."""

from __future__ import annotations

from typing import Any

from flask import jsonify, render_template

from khelkheleko.constants import STATUS_APPROVED
from khelkheleko.context_processors import get_app_version
from khelkheleko.services.tournament_service import TournamentService

from . import bp

FEATURED_LIMIT = 6


@bp.route("/")
def index() -> Any:
    """Landing page with featured tournaments, premium listings first."""
    tournaments = TournamentService.list_by_status((STATUS_APPROVED,))
    featured = sorted(
        tournaments, key=lambda t: not t.get("is_premium_listing", False)
    )[:FEATURED_LIMIT]
    return render_template(
        "index.html", featured=featured, total_open=len(tournaments)
    )


@bp.route("/app/version")
def version() -> Any:
    """Report the running build."""
    return jsonify({"version": get_app_version()})
