"""Forms for the tournament blueprint."""

from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField, MultipleFileField
from wtforms import (
    BooleanField,
    DateField,
    DecimalField,
    FloatField,
    HiddenField,
    IntegerField,
    SelectField,
    StringField,
    TextAreaField,
)
from wtforms.validators import (
    DataRequired,
    Email,
    Length,
    NumberRange,
    Optional,
    ValidationError,
)

from khelkheleko.constants import (
    ALL_DISTRICTS,
    NEPAL_PROVINCES,
    SPORTS_TYPES,
    TOURNAMENT_TYPES,
)

from khelkheleko.services.tournament_service import MAX_PARTICIPANTS, MIN_PARTICIPANTS


class TournamentForm(FlaskForm):
    """Form for creating/editing a tournament."""

    name = StringField("Tournament Name", validators=[DataRequired(), Length(min=3)])
    description = TextAreaField("Description", validators=[DataRequired(), Length(min=10)])
    sport_type = SelectField(
        "Sport",
        choices=[(s, s) for s in SPORTS_TYPES],
        validators=[DataRequired()],
    )
    tournament_type = SelectField(
        "Tournament Format",
        choices=TOURNAMENT_TYPES,
        validators=[DataRequired()],
        default="single_elimination",
    )

    start_date = DateField("Start Date", validators=[DataRequired()])
    end_date = DateField("End Date", validators=[DataRequired()])
    registration_deadline = DateField("Registration Deadline", validators=[DataRequired()])

    max_participants = IntegerField(
        "Max Participants",
        validators=[DataRequired(), NumberRange(min=MIN_PARTICIPANTS, max=MAX_PARTICIPANTS)],
    )
    entry_fee = DecimalField(
        "Entry Fee (NPR)", validators=[Optional(), NumberRange(min=0)], default=0
    )
    prize_pool = DecimalField(
        "Prize Pool (NPR)", validators=[Optional(), NumberRange(min=0)], default=0
    )

    venue_name = StringField("Venue Name", validators=[DataRequired()])
    venue_address = StringField("Venue Address", validators=[DataRequired(), Length(min=5)])
    province = SelectField(
        "Province",
        choices=[(p, p) for p in NEPAL_PROVINCES],
        validators=[DataRequired()],
    )
    district = SelectField(
        "District",
        choices=[(d, d) for d in ALL_DISTRICTS],
        validators=[DataRequired()],
    )
    latitude = FloatField("Latitude", validators=[Optional(), NumberRange(min=-90, max=90)])
    longitude = FloatField(
        "Longitude", validators=[Optional(), NumberRange(min=-180, max=180)]
    )

    rules = TextAreaField("Rules", validators=[DataRequired(), Length(min=20)])
    requirements = TextAreaField("Requirements", validators=[DataRequired(), Length(min=10)])
    contact_phone = StringField("Contact Phone", validators=[DataRequired(), Length(min=10)])
    contact_email = StringField("Contact Email", validators=[DataRequired(), Email()])

    is_premium_listing = BooleanField("Premium listing (रू 200)")

    images = MultipleFileField(
        "Images",
        validators=[Optional(), FileAllowed(["jpg", "jpeg", "png", "webp"], "Images only!")],
    )
    pdf_document = FileField(
        "Rules Document (PDF)",
        validators=[Optional(), FileAllowed(["pdf"], "PDF only!")],
    )

    version = HiddenField()

    def validate_district(self, field):
        """The district must belong to the chosen province."""
        if self.province.data and field.data not in NEPAL_PROVINCES.get(
            self.province.data, []
        ):
            raise ValidationError(f"{field.data} is not in {self.province.data}.")

    def to_payload(self) -> dict:
        """Collect the tournament fields as plain Firestore values."""
        return {
            "name": self.name.data.strip(),
            "description": self.description.data.strip(),
            "sport_type": self.sport_type.data,
            "tournament_type": self.tournament_type.data,
            "start_date": self.start_date.data.isoformat(),
            "end_date": self.end_date.data.isoformat(),
            "registration_deadline": self.registration_deadline.data.isoformat(),
            "max_participants": int(self.max_participants.data),
            "entry_fee": float(self.entry_fee.data or 0),
            "prize_pool": float(self.prize_pool.data or 0),
            "venue_name": self.venue_name.data.strip(),
            "venue_address": self.venue_address.data.strip(),
            "province": self.province.data,
            "district": self.district.data,
            "latitude": self.latitude.data,
            "longitude": self.longitude.data,
            "rules": self.rules.data.strip(),
            "requirements": self.requirements.data.strip(),
            "contact_phone": self.contact_phone.data.strip(),
            "contact_email": self.contact_email.data.strip(),
            "is_premium_listing": bool(self.is_premium_listing.data),
        }


class MatchResultForm(FlaskForm):
    """Form for recording the winner of a bracket match."""

    winner_id = StringField("Winner", validators=[DataRequired()])
    score = StringField("Score", validators=[Optional(), Length(max=50)])
