"""eSewa payment blueprint."""

from flask import Blueprint

bp = Blueprint("payment", __name__, url_prefix="/payment")

from . import routes  # noqa: E402, F401

__all__ = ["routes"]
