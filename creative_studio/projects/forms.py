from flask_wtf import FlaskForm
from wtforms import BooleanField, DateField, IntegerField, StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, Length, NumberRange, Optional

from ..models import TODO_PRIORITIES


class ProjectForm(FlaskForm):
    title = StringField("Project title", validators=[DataRequired(), Length(max=150)])
    description = TextAreaField("Short description", validators=[Optional(), Length(max=2000)])
    genre = StringField("Genre", validators=[Optional(), Length(max=120)])
    author = StringField("Author", validators=[Optional(), Length(max=120)])


class WorldSettingForm(FlaskForm):
    world_setting = TextAreaField("World setting", validators=[Optional()])


class CharacterForm(FlaskForm):
    name = StringField("Name", validators=[DataRequired(), Length(max=120)])
    age = IntegerField("Age", validators=[Optional(), NumberRange(min=0, max=10000)])
    role = StringField("Story role", validators=[Optional(), Length(max=120)])
    description = TextAreaField("Description", validators=[Optional()])
    appearance = TextAreaField("Appearance", validators=[Optional()])
    personality = TextAreaField("Personality", validators=[Optional()])
    backstory = TextAreaField("Backstory", validators=[Optional()])
    goals = TextAreaField("Goals", validators=[Optional()])
    image_url = StringField("Image URL", validators=[Optional()])


class EpisodeForm(FlaskForm):
    title = StringField("Episode title", validators=[DataRequired(), Length(max=150)])
    summary = TextAreaField("Summary", validators=[Optional()])
    content = TextAreaField("Content", validators=[Optional()])
    chapter_number = IntegerField("Chapter number", validators=[Optional(), NumberRange(min=1)])


class SceneEventForm(FlaskForm):
    title = StringField("Scene title", validators=[DataRequired(), Length(max=150)])
    description = TextAreaField("Description", validators=[Optional()])
    timestamp = IntegerField(
        "Timestamp",
        validators=[Optional(), NumberRange(min=0)],
        description="Minutes from the start of the story",
    )
    episode_id = IntegerField("Episode", validators=[Optional()])


class ElementForm(FlaskForm):
    name = StringField("Name", validators=[DataRequired(), Length(max=255)])
    parent_id = StringField("Parent folder", validators=[Optional()])
    is_folder = BooleanField("Folder")


class MindMapNodeForm(FlaskForm):
    title = StringField("Title", validators=[DataRequired(), Length(max=200)])
    description = TextAreaField("Description", validators=[Optional()])
    parent_id = StringField("Parent node", validators=[Optional()])


class TodoForm(FlaskForm):
    title = StringField("Title", validators=[DataRequired(), Length(max=200)])
    description = TextAreaField("Description", validators=[Optional()])
    completed = BooleanField("Completed")
    priority = StringField(
        "Priority",
        validators=[Optional(), AnyOf(TODO_PRIORITIES, message="Choose low, medium or high.")],
    )
    due_date = DateField("Due date", validators=[Optional()])


class NegativeArcPointForm(FlaskForm):
    phase = StringField("Phase", validators=[DataRequired(), Length(max=150)])
    description = TextAreaField("Description", validators=[Optional()])
    emotional_low = IntegerField(
        "Emotional low",
        validators=[DataRequired(), NumberRange(min=1, max=10)],
        description="1 (mild) to 10 (rock bottom)",
    )
