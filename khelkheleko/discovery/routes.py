"""Routes for the facilities listing, tournament map and geocoding lookups."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify, render_template, request

from khelkheleko.auth.decorators import login_required
from khelkheleko.constants import DEFAULT_MAP_CENTER, NEPAL_PROVINCES, SPORTS_TYPES
from khelkheleko.services.geocoder import geocode_address, reverse_geocode
from khelkheleko.services.tournament_service import TournamentService

from . import bp
from .services import LISTED_STATUSES, filter_tournaments, map_markers


def _filters() -> dict[str, Any]:
    return {
        "search": request.args.get("q", ""),
        "province": request.args.get("province") or None,
        "sport": request.args.get("sport") or None,
    }


@bp.route("/facilities")
def facilities() -> Any:
    """Browse listed tournaments and their venues."""
    filters = _filters()
    tournaments = filter_tournaments(
        TournamentService.list_by_status(LISTED_STATUSES), **filters
    )
    return render_template(
        "discovery/facilities.html",
        tournaments=tournaments,
        filters=filters,
        provinces=list(NEPAL_PROVINCES),
        sports=SPORTS_TYPES,
    )


@bp.route("/tournament-map")
def tournament_map() -> Any:
    """Map of listed tournaments with the same filters plus open/closed."""
    filters = _filters()
    filters["registration"] = request.args.get("registration") or None
    tournaments = filter_tournaments(
        TournamentService.list_by_status(LISTED_STATUSES), **filters
    )
    return render_template(
        "discovery/tournament_map.html",
        tournaments=tournaments,
        markers=map_markers(tournaments),
        filters=filters,
        provinces=list(NEPAL_PROVINCES),
        sports=SPORTS_TYPES,
        map_center=DEFAULT_MAP_CENTER,
    )


@bp.route("/tournament-map/data.json")
def map_data() -> Any:
    """Marker data for the map, filtered like the page."""
    filters = _filters()
    filters["registration"] = request.args.get("registration") or None
    tournaments = filter_tournaments(
        TournamentService.list_by_status(LISTED_STATUSES), **filters
    )
    return jsonify({"markers": map_markers(tournaments)})


@bp.route("/geocode/search")
@login_required
def geocode_search() -> Any:
    """Forward-geocode an address typed into the tournament form."""
    address = request.args.get("q", "").strip()
    if not address:
        return jsonify({"error": "Missing address."}), 400
    latitude, longitude = geocode_address(address)
    if latitude is None:
        current_app.logger.info(f"No geocoding result for {address!r}")
        return jsonify({"error": "Address not found."}), 404
    return jsonify({"latitude": latitude, "longitude": longitude})


@bp.route("/geocode/reverse")
@login_required
def geocode_reverse() -> Any:
    """Describe a point picked on the map."""
    try:
        latitude = float(request.args["lat"])
        longitude = float(request.args["lon"])
    except (KeyError, ValueError):
        return jsonify({"error": "lat and lon are required numbers."}), 400
    place = reverse_geocode(latitude, longitude)
    if place is None:
        return jsonify({"error": "No address found for this location."}), 404
    return jsonify(place)
