from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from .extensions import db, login_manager


FONT_SIZES = ("sm", "base", "lg", "xl")
FONT_FAMILIES = ("sans", "serif", "mono")
THEME_MODES = ("light", "dark")
TODO_PRIORITIES = ("low", "medium", "high")


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    display_name = db.Column(db.String(120), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    projects = db.relationship("Project", backref="owner", lazy=True, cascade="all, delete-orphan")
    settings = db.relationship(
        "UserSettings",
        backref="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "display_name": self.display_name}

    def __repr__(self) -> str:  # pragma: no cover - repr for debugging
        return f"<User {self.email}>"


@login_manager.user_loader
def load_user(user_id: str) -> Optional["User"]:
    return db.session.get(User, int(user_id))


class UserSettings(db.Model):
    __tablename__ = "user_settings"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    font_size = db.Column(db.String(10), nullable=False, default="base")
    font_family = db.Column(db.String(10), nullable=False, default="sans")
    theme_mode = db.Column(db.String(10), nullable=False, default="light")
    auto_save = db.Column(db.Boolean, nullable=False, default=True)
    auto_save_interval = db.Column(db.Integer, nullable=False, default=30000)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "font_size": self.font_size,
            "font_family": self.font_family,
            "theme_mode": self.theme_mode,
            "auto_save": self.auto_save,
            "auto_save_interval": self.auto_save_interval,
            "updated_at": _isoformat(self.updated_at),
        }


class Project(db.Model):
    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=True)
    genre = db.Column(db.String(120), nullable=True)
    author = db.Column(db.String(120), nullable=True)
    world_setting = db.Column(db.Text, nullable=True)
    setting_data = db.Column(db.JSON, nullable=True)
    file_tree = db.Column(db.JSON, nullable=False, default=list)
    mind_map = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    characters = db.relationship(
        "Character",
        backref="project",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Character.created_at",
    )
    episodes = db.relationship(
        "Episode",
        backref="project",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Episode.chapter_number",
    )
    scene_events = db.relationship(
        "SceneEvent",
        backref="project",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="SceneEvent.timestamp",
    )
    todos = db.relationship(
        "TodoItem",
        backref="project",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="TodoItem.created_at",
    )
    negative_arc = db.relationship(
        "NegativeArcPoint",
        backref="project",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="NegativeArcPoint.created_at",
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description or "",
            "genre": self.genre,
            "author": self.author,
            "world_setting": self.world_setting,
            "setting_data": self.setting_data,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Project {self.title}>"


class Character(db.Model):
    __tablename__ = "characters"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    age = db.Column(db.Integer, nullable=True)
    role = db.Column(db.String(120), nullable=True)
    description = db.Column(db.Text, nullable=True)
    appearance = db.Column(db.Text, nullable=True)
    personality = db.Column(db.Text, nullable=True)
    backstory = db.Column(db.Text, nullable=True)
    goals = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "role": self.role or "",
            "description": self.description or "",
            "appearance": self.appearance or "",
            "personality": self.personality or "",
            "backstory": self.backstory or "",
            "goals": self.goals,
            "image_url": self.image_url,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Character {self.name}>"


class Episode(db.Model):
    __tablename__ = "episodes"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True)
    title = db.Column(db.String(150), nullable=False)
    summary = db.Column(db.Text, nullable=True)
    content = db.Column(db.Text, nullable=True)
    chapter_number = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    scenes = db.relationship("SceneEvent", backref="episode", lazy=True, order_by="SceneEvent.timestamp")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "content": self.content,
            "chapter_number": self.chapter_number,
            "scene_ids": [scene.id for scene in self.scenes],
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Episode {self.chapter_number}: {self.title}>"


class SceneEvent(db.Model):
    __tablename__ = "scene_events"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True)
    episode_id = db.Column(db.Integer, db.ForeignKey("episodes.id"), nullable=True, index=True)
    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=True)
    timestamp = db.Column(db.Integer, nullable=False, default=0)
    character_ids = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description or "",
            "timestamp": self.timestamp,
            "character_ids": list(self.character_ids or []),
            "episode_id": self.episode_id,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<SceneEvent {self.title} @ {self.timestamp}>"


class TodoItem(db.Model):
    __tablename__ = "todo_items"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    priority = db.Column(db.String(10), nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority,
            "due_date": _isoformat(self.due_date),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


class NegativeArcPoint(db.Model):
    __tablename__ = "negative_arc_points"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True)
    phase = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=True)
    emotional_low = db.Column(db.Integer, nullable=False, default=5)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "phase": self.phase,
            "description": self.description or "",
            "emotional_low": self.emotional_low,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }
