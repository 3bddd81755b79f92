"""Database helper utilities for ensuring schema consistency."""
from __future__ import annotations

from typing import Dict, Iterable, Set

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db


# Columns added to ``projects`` after the first release, with the DDL type
# used when upgrading an existing database in place.
PROJECT_COLUMN_UPGRADES: Dict[str, str] = {
    "genre": "VARCHAR(120)",
    "author": "VARCHAR(120)",
    "world_setting": "TEXT",
    "setting_data": "JSON",
    "file_tree": "JSON NOT NULL DEFAULT '[]'",
    "mind_map": "JSON NOT NULL DEFAULT '[]'",
}


def _get_column_names(table_name: str) -> Set[str]:
    inspector = inspect(db.engine)
    return {column["name"] for column in inspector.get_columns(table_name)}


def ensure_database_schema() -> None:
    """Ensure that essential schema updates are applied.

    Runs on every application start. Creates the schema on an empty database,
    creates tables that were introduced later (settings, todos, negative arc)
    and adds the project columns holding the file tree, mind map and
    extracted setting data to databases created before they existed.
    """

    try:
        inspector = inspect(db.engine)
        table_names: Iterable[str] = inspector.get_table_names()

        if "projects" not in table_names:
            db.create_all()
            inspector = inspect(db.engine)
            table_names = inspector.get_table_names()

        # Import locally to avoid circular import issues during application setup.
        from .models import Episode, NegativeArcPoint, SceneEvent, TodoItem, UserSettings

        required_tables = {
            "user_settings": UserSettings.__table__,
            "episodes": Episode.__table__,
            "scene_events": SceneEvent.__table__,
            "todo_items": TodoItem.__table__,
            "negative_arc_points": NegativeArcPoint.__table__,
        }

        for table_name, table in required_tables.items():
            if table_name not in table_names:
                table.create(bind=db.engine)

        project_columns = _get_column_names("projects")
        for column_name, ddl_type in PROJECT_COLUMN_UPGRADES.items():
            if column_name in project_columns:
                continue
            with db.engine.begin() as connection:
                connection.execute(
                    text(f"ALTER TABLE projects ADD COLUMN {column_name} {ddl_type}")
                )
    except SQLAlchemyError:
        # Re-raise so the application does not continue in a partially configured state.
        raise
