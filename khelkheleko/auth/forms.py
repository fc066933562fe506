"""Forms for the auth blueprint."""

import re

from flask_wtf import FlaskForm  # type: ignore
from wtforms import (
    PasswordField,
    SelectField,
    StringField,
    SubmitField,
    ValidationError,
)
from wtforms.validators import DataRequired, Email, EqualTo, Length, Optional


class LoginForm(FlaskForm):
    """Login form."""

    email = StringField(
        "Email",
        validators=[DataRequired(), Email()],
        render_kw={"autocomplete": "username"},
    )
    password = PasswordField(
        "Password",
        validators=[DataRequired()],
        render_kw={"autocomplete": "current-password"},
    )
    submit = SubmitField("Login")


class RegisterForm(FlaskForm):
    """Registration form."""

    full_name = StringField("Full Name", validators=[DataRequired(), Length(min=2)])
    email = StringField(
        "Email",
        validators=[DataRequired(), Email()],
        render_kw={"autocomplete": "email"},
    )
    phone = StringField("Phone", validators=[Optional(), Length(min=10, max=15)])
    role = SelectField(
        "I want to",
        choices=[("player", "Join tournaments"), ("organizer", "Organize tournaments")],
        validators=[DataRequired()],
        default="player",
    )
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(),
            Length(min=8),
            EqualTo("confirm_password", message="Passwords must match."),
        ],
        render_kw={"autocomplete": "new-password"},
    )
    confirm_password = PasswordField(
        "Confirm Password",
        validators=[DataRequired()],
        render_kw={"autocomplete": "new-password"},
    )
    submit = SubmitField("Create Account")

    def validate_password(self, field):
        """Validate password complexity."""
        if not re.search(r"[A-Z]", field.data):
            raise ValidationError(
                "Password must contain at least one uppercase letter."
            )
        if not re.search(r"[a-z]", field.data):
            raise ValidationError(
                "Password must contain at least one lowercase letter."
            )
        if not re.search(r"\d", field.data):
            raise ValidationError("Password must contain at least one number.")
