import sys
from pathlib import Path

import pytest
from sqlalchemy.exc import SQLAlchemyError

sys.path.append(str(Path(__file__).resolve().parents[1]))

from creative_studio import create_app
from creative_studio.config import TestConfig
from creative_studio.extensions import db
from creative_studio.models import Character, Project, SceneEvent, User


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
    project = Project(title="Demo Project", description="Desc", owner=user, file_tree=[], mind_map=[])
    db.session.add(project)
    db.session.commit()
    return project


def _login(client, user):
    response = client.post("/login", json={"email": user.email, "password": "password123"})
    assert response.status_code == 200


def test_requires_login(client, project):
    response = client.get(f"/projects/{project.id}")

    assert response.status_code == 401


def test_other_users_project_is_forbidden(client, project):
    other = User(email="other@example.com", display_name="Other")
    other.set_password("password123")
    db.session.add(other)
    db.session.commit()
    _login(client, other)

    assert client.get(f"/projects/{project.id}").status_code == 403


def test_dashboard_creates_and_lists_projects(client, user):
    _login(client, user)

    response = client.post(
        "/dashboard",
        json={"title": "  Tidewater  ", "description": "", "genre": "Fantasy", "author": "R. Vale"},
    )

    assert response.status_code == 201
    created = response.get_json()["project"]
    assert created["title"] == "Tidewater"
    assert created["description"] == ""
    assert created["character_count"] == 0
    assert created["word_count"] == 0

    listing = client.get("/dashboard").get_json()["projects"]
    assert [item["title"] for item in listing] == ["Tidewater"]


def test_dashboard_requires_title(client, user):
    _login(client, user)

    response = client.post("/dashboard", json={"title": "   "})

    assert response.status_code == 400
    assert "title" in response.get_json()["errors"]
    assert Project.query.count() == 0


def test_update_project_keeps_unsent_fields(client, user, project):
    _login(client, user)

    response = client.patch(f"/projects/{project.id}", json={"genre": "Mystery"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["synced"] is True
    assert body["project"]["genre"] == "Mystery"
    assert body["project"]["title"] == "Demo Project"
    assert body["project"]["description"] == "Desc"


def test_delete_project_cascades(client, user, project):
    _login(client, user)
    db.session.add(Character(project=project, name="Nova"))
    db.session.commit()

    response = client.delete(f"/projects/{project.id}")

    assert response.status_code == 200
    assert Project.query.count() == 0
    assert Character.query.count() == 0


def test_file_tree_workflow(client, user, project):
    _login(client, user)

    folder = client.post(
        f"/projects/{project.id}/files",
        json={"name": "Chapter 1", "is_folder": True},
    )
    assert folder.status_code == 201
    folder_id = folder.get_json()["element"]["id"]

    scene = client.post(
        f"/projects/{project.id}/files",
        json={"name": "scene1.txt", "is_folder": False, "parent_id": folder_id},
    )
    assert scene.status_code == 201
    scene_id = scene.get_json()["element"]["id"]

    edited = client.patch(
        f"/projects/{project.id}/files/{scene_id}",
        json={"content": "Once upon a time..."},
    )
    assert edited.status_code == 200
    assert edited.get_json()["synced"] is True

    renamed = client.patch(f"/projects/{project.id}/files/{folder_id}", json={"name": "Chapter One"})
    assert renamed.status_code == 200

    db.session.expire_all()
    stored = db.session.get(Project, project.id).file_tree
    assert len(stored) == 1
    assert stored[0]["name"] == "Chapter One"
    assert stored[0]["children"][0]["name"] == "scene1.txt"
    assert stored[0]["children"][0]["content"] == "Once upon a time..."

    listing = client.get(f"/projects/{project.id}/files").get_json()
    assert listing["word_count"] == 4

    dashboard = client.get("/dashboard").get_json()["projects"]
    assert dashboard[0]["word_count"] == 4


def test_file_tree_reports_missing_and_mismatched_targets(client, user, project):
    _login(client, user)
    file_id = client.post(
        f"/projects/{project.id}/files", json={"name": "notes.txt"}
    ).get_json()["element"]["id"]

    missing_parent = client.post(
        f"/projects/{project.id}/files", json={"name": "x.txt", "parent_id": "nope"}
    )
    file_parent = client.post(
        f"/projects/{project.id}/files", json={"name": "x.txt", "parent_id": file_id}
    )
    missing_rename = client.patch(f"/projects/{project.id}/files/nope", json={"name": "x"})

    assert missing_parent.status_code == 404
    assert missing_parent.get_json()["status"] == "not_found"
    assert file_parent.status_code == 400
    assert file_parent.get_json()["status"] == "type_mismatch"
    assert missing_rename.status_code == 404


def test_file_delete_needs_the_direct_parent(client, user, project):
    _login(client, user)
    folder_id = client.post(
        f"/projects/{project.id}/files", json={"name": "Act I", "is_folder": True}
    ).get_json()["element"]["id"]
    file_id = client.post(
        f"/projects/{project.id}/files", json={"name": "draft.txt", "parent_id": folder_id}
    ).get_json()["element"]["id"]

    at_root = client.delete(f"/projects/{project.id}/files/{file_id}")
    assert at_root.status_code == 404

    removed = client.delete(
        f"/projects/{project.id}/files/{file_id}", query_string={"parent_id": folder_id}
    )
    assert removed.status_code == 200
    assert removed.get_json()["file_tree"][0]["children"] == []


def test_file_tree_commit_failure_reports_unsynced(monkeypatch, client, user, project):
    _login(client, user)

    def failing_commit():
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(db.session, "commit", failing_commit)

    response = client.post(f"/projects/{project.id}/files", json={"name": "lost.txt"})

    assert response.status_code == 201
    body = response.get_json()
    assert body["synced"] is False
    assert body["dirty"] is True
    assert body["file_tree"][0]["name"] == "lost.txt"


def test_character_crud(client, user, project):
    _login(client, user)

    created = client.post(
        f"/projects/{project.id}/characters",
        json={"name": "Nova", "age": 27, "role": "Scout", "appearance": "Scar over left eye"},
    )
    assert created.status_code == 201
    character_id = created.get_json()["character"]["id"]

    missing_name = client.post(f"/projects/{project.id}/characters", json={"role": "Pilot"})
    assert missing_name.status_code == 400
    assert "name" in missing_name.get_json()["errors"]

    updated = client.patch(
        f"/projects/{project.id}/characters/{character_id}",
        json={"age": None, "goals": "Chart safe passages."},
    )
    assert updated.status_code == 200
    body = updated.get_json()["character"]
    assert body["name"] == "Nova"
    assert body["age"] is None
    assert body["goals"] == "Chart safe passages."
    assert body["role"] == "Scout"

    deleted = client.delete(f"/projects/{project.id}/characters/{character_id}")
    assert deleted.status_code == 200
    assert Character.query.count() == 0


def test_episodes_are_numbered_in_order(client, user, project):
    _login(client, user)

    first = client.post(f"/projects/{project.id}/episodes", json={"title": "Arrival"})
    second = client.post(f"/projects/{project.id}/episodes", json={"title": "Departure"})

    assert first.get_json()["episode"]["chapter_number"] == 1
    assert second.get_json()["episode"]["chapter_number"] == 2

    episode_id = first.get_json()["episode"]["id"]
    patched = client.patch(
        f"/projects/{project.id}/episodes/{episode_id}", json={"content": "The ship docks."}
    )
    assert patched.get_json()["episode"]["content"] == "The ship docks."
    assert patched.get_json()["episode"]["title"] == "Arrival"


def test_timeline_orders_scenes_and_tracks_characters(client, user, project):
    _login(client, user)
    nova = Character(project=project, name="Nova")
    db.session.add(nova)
    db.session.commit()

    client.post(f"/projects/{project.id}/scenes", json={"title": "Finale", "timestamp": 90})
    opening = client.post(
        f"/projects/{project.id}/scenes",
        json={"title": "Opening", "timestamp": 5, "character_ids": [nova.id, 999]},
    )
    assert opening.status_code == 201
    assert opening.get_json()["scene"]["character_ids"] == [nova.id]

    timeline = client.get(f"/projects/{project.id}/timeline").get_json()
    assert [event["title"] for event in timeline["events"]] == ["Opening", "Finale"]
    assert timeline["total_duration"] == 90

    client.delete(f"/projects/{project.id}/characters/{nova.id}")
    db.session.expire_all()
    assert SceneEvent.query.filter_by(title="Opening").first().character_ids == []


def test_scene_rejects_negative_timestamp(client, user, project):
    _login(client, user)

    response = client.post(f"/projects/{project.id}/scenes", json={"title": "Prologue", "timestamp": -3})

    assert response.status_code == 400
    assert "timestamp" in response.get_json()["errors"]


def test_world_setting_update(client, user, project):
    _login(client, user)

    response = client.put(
        f"/projects/{project.id}/world-setting",
        json={"world_setting": "  The archipelago drifts with the moons.  "},
    )

    assert response.status_code == 200
    assert response.get_json()["world_setting"] == "The archipelago drifts with the moons."
    detail = client.get(f"/projects/{project.id}").get_json()
    assert detail["world_setting"] == "The archipelago drifts with the moons."
    assert detail["timeline"]["total_duration"] == 0
