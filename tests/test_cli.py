"""Flask CLI commands."""
from __future__ import annotations

from bookify.db import db
from bookify.models.user import User
from bookify.utils.auth import verify_password


def test_create_admin(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["create-admin", "--name", "Root", "--email", "Root@Example.com", "--password", "pw"])
    assert result.exit_code == 0, result.output
    assert "Created admin root@example.com" in result.output

    with app.app_context():
        user = User.query.filter_by(email="root@example.com").one()
        assert user.role == "admin"
        assert verify_password(user.password, "pw")


def test_create_admin_promotes_existing_user(app, register):
    _, user = register(email="promote@example.com")
    runner = app.test_cli_runner()
    result = runner.invoke(args=["create-admin", "--name", "X", "--email", "promote@example.com", "--password", "pw"])
    assert result.exit_code == 0, result.output

    with app.app_context():
        assert db.session.get(User, user["id"]).role == "admin"


def test_init_db(app):
    result = app.test_cli_runner().invoke(args=["init-db"])
    assert result.exit_code == 0
    assert "Database ready" in result.output
