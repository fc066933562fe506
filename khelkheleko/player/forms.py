"""Forms for the player blueprint."""

from flask_wtf import FlaskForm
from wtforms import (
    BooleanField,
    DateField,
    FloatField,
    SelectField,
    SelectMultipleField,
    StringField,
    TextAreaField,
)
from wtforms.validators import URL, Length, NumberRange, Optional

from khelkheleko.constants import SPORTS_TYPES

from .models import SKILL_LEVELS


class ProfileForm(FlaskForm):
    """Form for editing a player profile."""

    bio = TextAreaField("Bio", validators=[Optional(), Length(max=500)])
    favorite_sports = SelectMultipleField(
        "Favourite Sports", choices=[(s, s) for s in SPORTS_TYPES], validators=[Optional()]
    )
    skill_level = SelectField(
        "Skill Level", choices=[(s, s.title()) for s in SKILL_LEVELS], default="beginner"
    )
    location = StringField("Location", validators=[Optional(), Length(max=100)])
    date_of_birth = DateField("Date of Birth", validators=[Optional()])
    height = FloatField("Height (cm)", validators=[Optional(), NumberRange(min=50, max=260)])
    weight = FloatField("Weight (kg)", validators=[Optional(), NumberRange(min=20, max=250)])
    preferred_position = StringField("Preferred Position", validators=[Optional()])
    facebook = StringField("Facebook", validators=[Optional(), URL()])
    instagram = StringField("Instagram", validators=[Optional(), URL()])
    twitter = StringField("Twitter", validators=[Optional(), URL()])
    show_stats = BooleanField("Show my stats", default=True)
    show_achievements = BooleanField("Show my achievements", default=True)
    show_contact = BooleanField("Show my contact details")

    def to_payload(self) -> dict:
        """Collect profile fields in their stored shape."""
        return {
            "bio": (self.bio.data or "").strip(),
            "favorite_sports": list(self.favorite_sports.data or []),
            "skill_level": self.skill_level.data,
            "location": (self.location.data or "").strip(),
            "date_of_birth": self.date_of_birth.data.isoformat()
            if self.date_of_birth.data
            else None,
            "height": self.height.data,
            "weight": self.weight.data,
            "preferred_position": (self.preferred_position.data or "").strip(),
            "social_links": {
                name: getattr(self, name).data
                for name in ("facebook", "instagram", "twitter")
                if getattr(self, name).data
            },
            "privacy_settings": {
                "show_stats": bool(self.show_stats.data),
                "show_achievements": bool(self.show_achievements.data),
                "show_contact": bool(self.show_contact.data),
            },
        }
