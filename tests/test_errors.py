"""JSON error envelope for aborted and crashing views."""
from __future__ import annotations

from bookify.db import db
from bookify.models.book import Book


def test_http_errors_use_the_json_envelope(client):
    resp = client.get("/api/books/999")
    assert resp.status_code == 404
    assert resp.get_json() == {"message": "Book not found", "status": 404}


def test_unexpected_error_is_a_generic_500_and_rolls_back(client, monkeypatch):
    rollbacks = []

    def exploding_query():
        raise RuntimeError("connection reset by peer")

    monkeypatch.setattr(Book, "newest_first", staticmethod(exploding_query))
    monkeypatch.setattr(db.session, "rollback", lambda: rollbacks.append(True))

    resp = client.get("/api/books")

    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Internal server error", "status": 500}
    assert "connection reset" not in resp.get_data(as_text=True)
    assert rollbacks == [True]
