"""Context processors for the Flask application."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any

from flask import current_app, g

from .notification.services import NotificationService

VERSION_THRESHOLD = 10
VERSION_SHORT_LENGTH = 7


def get_app_version() -> str:
    """Resolve the running version from the environment or a VERSION file."""
    version = (
        os.environ.get("APP_VERSION")
        or os.environ.get("GITHUB_SHA")
        or os.environ.get("RENDER_GIT_COMMIT")
    )

    if not version:
        version_file = Path(current_app.root_path).parent / "VERSION"
        if version_file.exists():
            version = version_file.read_text().strip()

    if not version:
        version = "dev"

    # If it's a long git hash, shorten it
    if len(version) > VERSION_THRESHOLD and version != "dev":
        version = version[:VERSION_SHORT_LENGTH]
    return version


def inject_global_context() -> dict[str, Any]:
    """Injects global context variables into templates."""
    return {
        "current_year": datetime.now().year,
        "app_version": get_app_version(),
        "is_testing": current_app.config.get("TESTING", False),
    }


def inject_notifications() -> dict[str, Any]:
    """Injects the unread notification count for the current viewer."""
    try:
        user = getattr(g, "user", None)
        if user:
            return dict(unread_notifications=NotificationService.unread_count(user))
    except (Exception, RuntimeError) as e:
        # RuntimeError usually means we're outside a request context
        if not isinstance(e, RuntimeError):
            current_app.logger.error(f"Error counting notifications: {e}")
    return dict(unread_notifications=0)
