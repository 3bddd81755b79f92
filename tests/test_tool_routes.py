import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from creative_studio import create_app
from creative_studio.config import TestConfig
from creative_studio.extensions import db
from creative_studio.models import NegativeArcPoint, Project, TodoItem, User


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
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture
def user(app_instance):
    user = User(email="writer@example.com", display_name="Test Writer")
    user.set_password("password123")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def project(app_instance, user):
    project = Project(title="Demo Project", owner=user, file_tree=[], mind_map=[])
    db.session.add(project)
    db.session.commit()
    return project


@pytest.fixture
def logged_in(client, user):
    client.post("/login", json={"email": user.email, "password": "password123"})
    return client


def test_mind_map_nodes_nest_and_delete(logged_in, project):
    base = f"/projects/{project.id}/tools/mindmap"

    root = logged_in.post(base, json={"title": "Themes"})
    assert root.status_code == 201
    root_id = root.get_json()["node"]["id"]

    child = logged_in.post(base, json={"title": "Grief", "parent_id": root_id})
    assert child.status_code == 201
    child_id = child.get_json()["node"]["id"]

    updated = logged_in.patch(f"{base}/{child_id}", json={"description": "Carried by the lighthouse keeper"})
    assert updated.status_code == 200
    assert updated.get_json()["node"]["title"] == "Grief"

    tree = logged_in.get(base).get_json()["mind_map"]
    assert tree[0]["children"][0]["description"] == "Carried by the lighthouse keeper"

    deleted = logged_in.delete(f"{base}/{root_id}")
    assert deleted.status_code == 200
    assert deleted.get_json()["mind_map"] == []
    assert logged_in.delete(f"{base}/{child_id}").status_code == 404


def test_mind_map_unknown_parent(logged_in, project):
    response = logged_in.post(
        f"/projects/{project.id}/tools/mindmap", json={"title": "Stray", "parent_id": "missing"}
    )

    assert response.status_code == 404
    assert response.get_json()["status"] == "not_found"


def test_todo_lifecycle(logged_in, project):
    base = f"/projects/{project.id}/tools/todos"

    created = logged_in.post(
        base,
        json={"title": "Outline act two", "priority": "high", "due_date": "2026-11-01"},
    )
    assert created.status_code == 201
    todo = created.get_json()["todo"]
    assert todo["completed"] is False
    assert todo["due_date"] == "2026-11-01"

    toggled = logged_in.post(f"{base}/{todo['id']}/toggle")
    assert toggled.get_json()["todo"]["completed"] is True

    patched = logged_in.patch(f"{base}/{todo['id']}", json={"description": "Focus on the midpoint"})
    body = patched.get_json()["todo"]
    assert body["completed"] is True
    assert body["priority"] == "high"
    assert body["description"] == "Focus on the midpoint"

    assert logged_in.delete(f"{base}/{todo['id']}").status_code == 200
    assert TodoItem.query.count() == 0


def test_todo_rejects_unknown_priority(logged_in, project):
    response = logged_in.post(
        f"/projects/{project.id}/tools/todos", json={"title": "Edit", "priority": "urgent"}
    )

    assert response.status_code == 400
    assert "priority" in response.get_json()["errors"]


def test_negative_arc_bounds(logged_in, project):
    base = f"/projects/{project.id}/tools/negative-arc"

    too_low = logged_in.post(base, json={"phase": "Collapse", "emotional_low": 11})
    assert too_low.status_code == 400

    created = logged_in.post(base, json={"phase": "Collapse", "emotional_low": 9})
    assert created.status_code == 201
    point_id = created.get_json()["point"]["id"]

    patched = logged_in.patch(f"{base}/{point_id}", json={"description": "Loses the crew"})
    assert patched.get_json()["point"]["emotional_low"] == 9
    assert NegativeArcPoint.query.first().description == "Loses the crew"


def test_user_settings_defaults_and_validation(logged_in):
    defaults = logged_in.get("/settings").get_json()["settings"]
    assert defaults["font_size"] == "base"
    assert defaults["theme_mode"] == "light"
    assert defaults["auto_save_interval"] == 30000

    invalid = logged_in.put("/settings", json={"font_family": "cursive"})
    assert invalid.status_code == 400

    updated = logged_in.put("/settings", json={"theme_mode": "dark", "font_size": "xl"})
    assert updated.status_code == 200
    settings = updated.get_json()["settings"]
    assert settings["theme_mode"] == "dark"
    assert settings["font_size"] == "xl"
    assert settings["auto_save"] is True


def test_mind_map_description_can_be_cleared(logged_in, project):
    base = f"/projects/{project.id}/tools/mindmap"
    created = logged_in.post(base, json={"title": "Themes", "description": "Loss"})
    node_id = created.get_json()["node"]["id"]
    assert created.get_json()["dirty"] is False

    renamed = logged_in.patch(f"{base}/{node_id}", json={"title": "Motifs"})
    assert renamed.get_json()["node"]["description"] == "Loss"

    cleared = logged_in.patch(f"{base}/{node_id}", json={"description": None})
    assert cleared.status_code == 200
    assert cleared.get_json()["node"]["description"] is None
    assert cleared.get_json()["synced"] is True
    assert cleared.get_json()["dirty"] is False

    rejected = logged_in.patch(f"{base}/{node_id}", json={"description": {"text": "nested"}})
    assert rejected.status_code == 400
    assert "description" in rejected.get_json()["errors"]
