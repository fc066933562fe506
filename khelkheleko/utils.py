"""Utility functions for the application."""

from __future__ import annotations

import datetime
import smtplib
import time
from typing import Any

from flask import current_app, render_template
from flask_mail import Message

from .extensions import mail


class EmailError(Exception):
    """Base class for email errors."""

    pass


def send_email(to, subject, template, **kwargs):
    """Send an email to a recipient.

    Raises:
        EmailError: If sending the email fails.
    """
    msg = Message(
        subject,
        recipients=[to],
        html=render_template(template, **kwargs),
        sender=current_app.config["MAIL_DEFAULT_SENDER"],
    )
    try:
        mail.send(msg)
    except smtplib.SMTPAuthenticationError as e:
        if e.smtp_code == 534:
            raise EmailError(
                "Authentication failed. The mail provider requires an app password. "
                "Please verify your MAIL_USERNAME and MAIL_PASSWORD settings."
            ) from e
        raise EmailError(f"SMTP Authentication failed: {e}") from e
    except Exception as e:
        raise EmailError(f"Failed to send email: {e}") from e


def utcnow() -> datetime.datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)


def epoch_millis() -> int:
    """Milliseconds since the epoch, used to build readable document ids."""
    return int(time.time() * 1000)


def parse_date(value: Any) -> datetime.date | None:
    """Coerce an ISO date string, date or datetime into a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if hasattr(value, "to_datetime"):  # Firestore Timestamp
        return value.to_datetime().date()
    try:
        return datetime.date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def format_npr(amount: Any) -> str:
    """Format an amount as Nepalese rupees."""
    try:
        value = float(amount or 0)
    except (TypeError, ValueError):
        value = 0.0
    if value.is_integer():
        return f"रू {int(value):,}"
    return f"रू {value:,.2f}"
