"""Shared fixtures: an app on in-memory SQLite, local media and suppressed mail."""
from __future__ import annotations

import io
import itertools

import pytest

from bookify.config import TestConfig
from bookify.db import db
from bookify.models.user import User
from bookify.utils.auth import hash_password
from main import create_app

_emails = itertools.count(1)


@pytest.fixture
def app(tmp_path):
    class _Config(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / "uploads")

    app = create_app(_Config)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def outbox(app):
    """Messages the suppressed mailer would have sent."""
    from bookify.services.email_service import get_mailer

    with app.app_context():
        mailer = get_mailer()
    return mailer.outbox


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    def _register(name="Reader", email=None, password="secret123"):
        email = email or f"reader{next(_emails)}@example.com"
        resp = client.post("/api/users/register", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 201, resp.get_json()
        body = resp.get_json()
        return body["accessToken"], body["user"]

    return _register


@pytest.fixture
def admin(app, client):
    """Create an admin straight in the database and log in as it."""
    with app.app_context():
        user = User(name="Admin", email="root@example.com", password=hash_password("adminpass"), role="admin")
        db.session.add(user)
        db.session.commit()
    resp = client.post("/api/users/login", json={"email": "root@example.com", "password": "adminpass"})
    body = resp.get_json()
    return body["accessToken"], body["user"]


@pytest.fixture
def create_book(client):
    def _create(token, title="Dune", genre="Science Fiction", book_type="pdf", **fields):
        data = {
            "title": title,
            "genre": genre,
            "description": fields.pop("description", f"{title} description"),
            "authorName": fields.pop("authorName", "Frank Herbert"),
            "bookType": book_type,
            "coverImage": (io.BytesIO(b"\x89PNG cover"), "cover.png"),
        }
        if book_type == "audio":
            data["audioFile"] = (io.BytesIO(b"ID3 audio"), "book.mp3")
        else:
            data["file"] = (io.BytesIO(b"%PDF-1.4 body"), "book.pdf")
        data.update(fields)
        resp = client.post("/api/books", data=data, headers=bearer(token), content_type="multipart/form-data")
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()

    return _create
