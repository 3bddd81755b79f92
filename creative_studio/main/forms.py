from flask_wtf import FlaskForm
from wtforms import BooleanField, IntegerField, StringField
from wtforms.validators import AnyOf, DataRequired, NumberRange

from ..models import FONT_FAMILIES, FONT_SIZES, THEME_MODES


class UserSettingsForm(FlaskForm):
    font_size = StringField("Font size", validators=[DataRequired(), AnyOf(FONT_SIZES)])
    font_family = StringField("Font family", validators=[DataRequired(), AnyOf(FONT_FAMILIES)])
    theme_mode = StringField("Theme", validators=[DataRequired(), AnyOf(THEME_MODES)])
    auto_save = BooleanField("Auto save")
    auto_save_interval = IntegerField(
        "Auto save interval",
        validators=[DataRequired(), NumberRange(min=1000, max=3_600_000)],
        description="Milliseconds between automatic saves",
    )
