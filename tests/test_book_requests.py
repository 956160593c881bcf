"""Public book requests and the admin listing."""
from __future__ import annotations

import pytest

from bookify.routes import request_book_routes
from bookify.services.email_service import EmailDeliveryError
from conftest import bearer

VALID_REQUEST = {
    "bookName": "The Left Hand of Darkness",
    "authorName": "Ursula K. Le Guin",
    "category": "Science Fiction",
    "userEmail": "Visitor@Example.com",
    "message": "Please add the audio version",
}


def test_request_is_persisted_as_pending_and_visible_to_admin(client, admin, outbox):
    resp = client.post("/api/request-book", json=VALID_REQUEST)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["emailSent"] is True
    assert body["request"]["status"] == "pending"
    assert body["request"]["userEmail"] == "visitor@example.com"

    admin_token, _ = admin
    listing = client.get("/api/admin/book-requests", headers=bearer(admin_token)).get_json()
    assert [r["bookName"] for r in listing] == ["The Left Hand of Darkness"]
    assert listing[0]["status"] == "pending"

    assert len(outbox) == 1
    assert outbox[0]["To"] == "admin@example.com"
    assert "Ursula K. Le Guin" in outbox[0].get_body(("html",)).get_content()


@pytest.mark.parametrize("missing", ["bookName", "authorName", "category", "userEmail"])
def test_request_requires_four_fields(client, missing):
    payload = dict(VALID_REQUEST)
    payload[missing] = "  "
    resp = client.post("/api/request-book", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "All required fields must be filled"


def test_message_is_optional(client):
    payload = {k: v for k, v in VALID_REQUEST.items() if k != "message"}
    resp = client.post("/api/request-book", json=payload)
    assert resp.status_code == 201
    assert resp.get_json()["request"]["message"] is None


def test_email_failure_keeps_the_request(client, admin, monkeypatch):
    def boom(_request):
        raise EmailDeliveryError("relay down")

    monkeypatch.setattr(request_book_routes, "send_book_request_email", boom)
    resp = client.post("/api/request-book", json=VALID_REQUEST)
    assert resp.status_code == 201
    assert resp.get_json()["emailSent"] is False

    admin_token, _ = admin
    listing = client.get("/api/admin/book-requests", headers=bearer(admin_token)).get_json()
    assert len(listing) == 1


def test_admin_listing_is_newest_first(client, admin):
    for name in ("First", "Second", "Third"):
        client.post("/api/request-book", json=dict(VALID_REQUEST, bookName=name))
    admin_token, _ = admin
    listing = client.get("/api/admin/book-requests", headers=bearer(admin_token)).get_json()
    assert [r["bookName"] for r in listing] == ["Third", "Second", "First"]


def test_listing_requires_admin(client, register):
    assert client.get("/api/admin/book-requests").status_code == 401
    token, _ = register()
    assert client.get("/api/admin/book-requests", headers=bearer(token)).status_code == 403


def test_request_rejects_non_object_body(client):
    resp = client.post("/api/request-book", json=[VALID_REQUEST])
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Request body must be a JSON object"
