"""Routes for the notification inbox."""

from __future__ import annotations

from typing import Any

from flask import flash, g, jsonify, redirect, render_template, request, url_for

from khelkheleko.auth.decorators import login_required
from khelkheleko.errors import AppError

from . import bp
from .services import NotificationService


@bp.route("/", methods=["GET"])
@login_required
def inbox() -> Any:
    """Show the viewer's notifications."""
    notifications = NotificationService.list_for_viewer(g.user)
    if request.args.get("format") == "json":
        return jsonify(
            {
                "notifications": [
                    {**n, "timestamp": n["timestamp"].isoformat()}
                    for n in notifications
                ],
                "unread": sum(1 for n in notifications if not n["read"]),
            }
        )
    return render_template("notifications.html", notifications=notifications)


@bp.route("/<string:notification_id>/read", methods=["POST"])
@login_required
def mark_read(notification_id: str) -> Any:
    """Mark a single notification as read."""
    try:
        NotificationService.mark_as_read(notification_id, g.user)
    except AppError as e:
        flash(e.message, "danger")
    return redirect(request.referrer or url_for(".inbox"))


@bp.route("/read-all", methods=["POST"])
@login_required
def mark_all_read() -> Any:
    """Mark the whole inbox as read."""
    count = NotificationService.mark_all_as_read(g.user)
    flash(f"Marked {count} notification(s) as read.", "success")
    return redirect(request.referrer or url_for(".inbox"))


@bp.route("/clear", methods=["POST"])
@login_required
def clear() -> Any:
    """Empty the inbox."""
    NotificationService.clear(g.user)
    flash("Notifications cleared.", "info")
    return redirect(url_for(".inbox"))
