"""Decorators for the auth blueprint."""

from functools import wraps

from flask import flash, redirect, request, session, url_for


def login_required(f=None, roles=None):
    """Redirect to the login page if the user is not logged in.

    Usage:
    @login_required
    def protected_view():
        ...

    @login_required(roles=("admin",))
    def admin_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            if "user_id" not in session:
                flash("Please log in to continue.", "info")
                next_url = request.full_path if request.query_string else request.path
                return redirect(url_for("auth.login", next=next_url))
            if roles and session.get("role") not in roles:
                flash("You are not authorized to view this page.", "danger")
                return redirect(url_for("main.index"))
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
