"""Tournament discovery blueprint: listings, map and geocoding lookups."""

from flask import Blueprint

bp = Blueprint("discovery", __name__)

from . import routes  # noqa: E402, F401

__all__ = ["routes"]
