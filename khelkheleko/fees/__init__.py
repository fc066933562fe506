"""Platform fees and pricing blueprint."""

from flask import Blueprint

bp = Blueprint("fees", __name__)

from . import routes  # noqa: E402, F401

__all__ = ["routes"]
