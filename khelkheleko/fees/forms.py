"""Forms for the fees blueprint."""

from flask_wtf import FlaskForm
from wtforms import BooleanField, DecimalField, IntegerField
from wtforms.validators import InputRequired, NumberRange


class FeeCalculatorForm(FlaskForm):
    """Inputs for the revenue breakdown."""

    class Meta:
        csrf = False

    entry_fee = DecimalField(
        "Entry Fee (NPR)", validators=[InputRequired(), NumberRange(min=0)], default=500
    )
    participants = IntegerField(
        "Expected Participants",
        validators=[InputRequired(), NumberRange(min=0, max=1000)],
        default=16,
    )
    premium_listing = BooleanField("Premium listing")
