"""Forms for the registration blueprint."""

from flask_wtf import FlaskForm
from wtforms import (
    BooleanField,
    IntegerField,
    SelectField,
    StringField,
    TextAreaField,
)
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional, Regexp

from khelkheleko.constants import EXPERIENCE_LEVELS

PHONE_PATTERN = r"^\+?[0-9 \-]{10,15}$"


class TournamentRegistrationForm(FlaskForm):
    """Player details collected when joining a tournament."""

    player_name = StringField("Full Name", validators=[DataRequired(), Length(min=2)])
    email = StringField("Email", validators=[DataRequired(), Email()])
    phone = StringField(
        "Phone",
        validators=[
            DataRequired(),
            Regexp(PHONE_PATTERN, message="Enter a phone number of at least 10 digits."),
        ],
    )
    age = IntegerField("Age", validators=[DataRequired(), NumberRange(min=13, max=100)])
    experience_level = SelectField(
        "Experience Level", choices=EXPERIENCE_LEVELS, validators=[DataRequired()]
    )
    team_name = StringField("Team Name", validators=[Optional(), Length(max=100)])
    emergency_contact = StringField(
        "Emergency Contact", validators=[DataRequired(), Length(min=10)]
    )
    medical_conditions = TextAreaField("Medical Conditions", validators=[Optional()])
    terms_accepted = BooleanField(
        "I accept the tournament rules and terms",
        validators=[DataRequired(message="You must accept the terms.")],
    )

    def to_payload(self) -> dict:
        """Collect the registration fields as plain Firestore values."""
        return {
            "player_name": self.player_name.data.strip(),
            "email": self.email.data.strip(),
            "phone": self.phone.data.strip(),
            "age": int(self.age.data),
            "experience_level": self.experience_level.data,
            "team_name": (self.team_name.data or "").strip(),
            "emergency_contact": self.emergency_contact.data.strip(),
            "medical_conditions": (self.medical_conditions.data or "").strip(),
        }
