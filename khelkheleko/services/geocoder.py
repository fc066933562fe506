"""
Forward and reverse geocoding for venues through the Nominatim API.
Forward searches are pinned to Nepal by suffixing the query with the country.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

import requests
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

TIMEOUT = 10
REQUEST_HEADERS = {"User-Agent": "KhelKheleko/1.0 (venue geocoding; contact: site admin)"}
NOMINATIM_URL = "https://nominatim.openstreetmap.org"
COUNTRY_SUFFIX = "Nepal"


def _settings() -> Tuple[str, float]:
    if has_app_context():
        return (
            current_app.config.get("GEOCODER_URL") or NOMINATIM_URL,
            float(current_app.config.get("GEOCODER_TIMEOUT") or TIMEOUT),
        )
    return NOMINATIM_URL, TIMEOUT


def _request_nominatim(path: str, params: dict[str, Any]) -> Optional[Any]:
    """One GET against Nominatim. Returns the decoded body or None."""
    base_url, timeout = _settings()
    try:
        resp = requests.get(
            f"{base_url.rstrip('/')}/{path}",
            params={"format": "json", **params},
            timeout=timeout,
            headers=REQUEST_HEADERS,
        )
        if resp.status_code != 200:
            logger.warning(
                "Nominatim error %s: %s", resp.status_code, resp.text[:200] if resp.text else ""
            )
            return None
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Nominatim request failed: %s", e)
        return None


def geocode_address(address: str) -> Tuple[Optional[float], Optional[float]]:
    """
    Resolve an address to (latitude, longitude).

    :param address: Free-text address; ", Nepal" is appended when missing.
    :return: (latitude, longitude) or (None, None).
    """
    query = (address or "").strip()
    if not query:
        return None, None
    if COUNTRY_SUFFIX.lower() not in query.lower():
        query = f"{query}, {COUNTRY_SUFFIX}"

    results = _request_nominatim("search", {"q": query, "limit": 1})
    if not results:
        return None, None
    try:
        return float(results[0]["lat"]), float(results[0]["lon"])
    except (KeyError, IndexError, TypeError, ValueError):
        return None, None


def reverse_geocode(latitude: float, longitude: float) -> Optional[dict[str, Any]]:
    """
    Describe a map point.

    :return: dict with ``display_name`` and the address parts used to
        prefill venue fields (``venue_address``, ``district``), or None.
    """
    data = _request_nominatim(
        "reverse",
        {"lat": latitude, "lon": longitude, "zoom": 18, "addressdetails": 1},
    )
    if not data or "display_name" not in data:
        return None
    address = data.get("address") or {}
    district = (
        address.get("county")
        or address.get("state_district")
        or address.get("city")
        or address.get("town")
        or ""
    )
    return {
        "display_name": data["display_name"],
        "venue_address": data["display_name"],
        "district": district.replace(" District", ""),
        "latitude": latitude,
        "longitude": longitude,
    }
