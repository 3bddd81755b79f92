import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from creative_studio import create_app
from creative_studio.config import TestConfig
from creative_studio.extensions import db
from creative_studio.models import User, UserSettings


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


def test_register_login_and_logout(client):
    registered = client.post(
        "/register",
        json={
            "email": "Writer@Example.com",
            "display_name": "  Writer  ",
            "password": "password123",
            "confirm_password": "password123",
        },
    )

    assert registered.status_code == 201
    user = User.query.filter_by(email="writer@example.com").first()
    assert user is not None
    assert user.display_name == "Writer"
    assert UserSettings.query.filter_by(user_id=user.id).count() == 1

    bad_login = client.post("/login", json={"email": "writer@example.com", "password": "wrong-pass"})
    assert bad_login.status_code == 401

    login = client.post("/login", json={"email": "writer@example.com", "password": "password123"})
    assert login.status_code == 200
    assert client.get("/").get_json()["user"]["email"] == "writer@example.com"

    assert client.post("/logout").status_code == 200
    assert client.get("/").get_json()["user"] is None
    assert client.get("/dashboard").status_code == 401


def test_register_rejects_duplicate_email_and_mismatched_password(client):
    client.post(
        "/register",
        json={
            "email": "writer@example.com",
            "display_name": "Writer",
            "password": "password123",
            "confirm_password": "password123",
        },
    )

    duplicate = client.post(
        "/register",
        json={
            "email": "writer@example.com",
            "display_name": "Other",
            "password": "password123",
            "confirm_password": "password123",
        },
    )
    mismatch = client.post(
        "/register",
        json={
            "email": "new@example.com",
            "display_name": "New",
            "password": "password123",
            "confirm_password": "password124",
        },
    )

    assert duplicate.status_code == 400
    assert "email" in duplicate.get_json()["errors"]
    assert mismatch.status_code == 400
    assert "confirm_password" in mismatch.get_json()["errors"]


def test_csrf_token_endpoint(client):
    response = client.get("/csrf-token")

    assert response.status_code == 200
    assert "csrf_token" in response.get_json()
