"""Forms for the admin blueprint."""

from flask_wtf import FlaskForm
from wtforms import HiddenField, IntegerField, TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange


class ApproveTournamentForm(FlaskForm):
    """Carries the version the admin reviewed."""

    version = HiddenField()


class RejectTournamentForm(FlaskForm):
    """Rejection needs a reason the organizer will see."""

    reason = TextAreaField(
        "Reason for rejection",
        validators=[
            DataRequired(message="A reason is required to reject a tournament."),
            Length(max=1000),
        ],
    )
    version = HiddenField()


class SeedDataForm(FlaskForm):
    """How much demo data to generate."""

    tournaments = IntegerField(
        "Tournaments", validators=[DataRequired(), NumberRange(min=1, max=25)], default=5
    )
