"""Forms for the organizer blueprint."""

from flask_wtf import FlaskForm
from wtforms import FloatField, HiddenField, IntegerField, SelectField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional

from khelkheleko.constants import REG_CONFIRMED, REG_REGISTERED, REG_REJECTED


class RegistrationStatusForm(FlaskForm):
    """Confirm, reject or restore one registration."""

    status = SelectField(
        "Status",
        choices=[
            (REG_CONFIRMED, "Confirm"),
            (REG_REJECTED, "Reject"),
            (REG_REGISTERED, "Restore"),
        ],
        validators=[DataRequired()],
    )
    version = HiddenField()


class TournamentResultForm(FlaskForm):
    """A player's results in a finished tournament."""

    player_id = SelectField("Player", validators=[DataRequired()], choices=[])
    matches_played = IntegerField(
        "Matches Played", validators=[InputRequired(), NumberRange(min=0)]
    )
    matches_won = IntegerField(
        "Matches Won", validators=[InputRequired(), NumberRange(min=0)]
    )
    hours_played = FloatField(
        "Hours Played", validators=[Optional(), NumberRange(min=0)], default=0
    )
    position = IntegerField("Final Position", validators=[Optional(), NumberRange(min=1)])
    performance_rating = FloatField(
        "Performance Rating", validators=[Optional(), NumberRange(min=0, max=5)]
    )
