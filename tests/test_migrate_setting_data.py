import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from creative_studio import create_app
from creative_studio.config import TestConfig
from creative_studio.extensions import db
from creative_studio.models import Character, Project, User
from scripts.migrate_setting_data import migrate, parse_args


@pytest.fixture
def app_instance():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def projects(app_instance):
    user = User(email="writer@example.com", display_name="Test Writer")
    user.set_password("password123")
    fresh = Project(title="Fresh", owner=user, file_tree=[], mind_map=[])
    seeded = Project(
        title="Seeded",
        owner=user,
        file_tree=[],
        mind_map=[],
        setting_data={"characters": [{"name": "Keep me"}]},
    )
    db.session.add_all([user, fresh, seeded])
    db.session.add(Character(project=fresh, name="Nova", personality="Calm"))
    db.session.add(Character(project=seeded, name="Ilan"))
    db.session.commit()
    return fresh, seeded


def test_migrate_skips_projects_with_setting_data(projects):
    fresh, seeded = projects

    assert migrate() == 1

    assert fresh.setting_data["characters"][0]["name"] == "Nova"
    assert fresh.setting_data["characters"][0]["traits"] == ["Calm"]
    assert seeded.setting_data == {"characters": [{"name": "Keep me"}]}


def test_migrate_force_rebuilds_everything(projects):
    fresh, seeded = projects

    assert migrate(force=True) == 2

    assert seeded.setting_data["characters"][0]["name"] == "Ilan"


def test_parse_args_force_flag():
    assert parse_args(["--force"]).force is True
    assert parse_args([]).force is False
