"""Tournament blueprint."""

from flask import Blueprint

bp = Blueprint("tournament", __name__)

from . import routes  # noqa: E402, F401

__all__ = ["routes"]
