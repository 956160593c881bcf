"""Wishlist add/remove/list."""
from __future__ import annotations

from conftest import bearer


def test_add_and_list_wishlist(client, register, create_book):
    token, _ = register()
    book = create_book(token)

    resp = client.post(f"/api/users/wishlist/{book['id']}", headers=bearer(token))
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Added to wishlist"}

    wishlist = client.get("/api/users/wishlist", headers=bearer(token)).get_json()
    assert [b["id"] for b in wishlist] == [book["id"]]
    assert wishlist[0]["title"] == book["title"]


def test_adding_twice_keeps_one_entry(client, register, create_book):
    token, _ = register()
    book = create_book(token)
    url = f"/api/users/wishlist/{book['id']}"

    assert client.post(url, headers=bearer(token)).status_code == 200
    resp = client.post(url, headers=bearer(token))
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Already in wishlist"

    wishlist = client.get("/api/users/wishlist", headers=bearer(token)).get_json()
    assert [b["id"] for b in wishlist] == [book["id"]]


def test_remove_from_wishlist(client, register, create_book):
    token, _ = register()
    keep = create_book(token, title="Keep")
    drop = create_book(token, title="Drop")
    client.post(f"/api/users/wishlist/{keep['id']}", headers=bearer(token))
    client.post(f"/api/users/wishlist/{drop['id']}", headers=bearer(token))

    resp = client.delete(f"/api/users/wishlist/{drop['id']}", headers=bearer(token))
    assert resp.status_code == 200

    wishlist = client.get("/api/users/wishlist", headers=bearer(token)).get_json()
    assert [b["id"] for b in wishlist] == [keep["id"]]


def test_remove_absent_book_is_noop(client, register, create_book):
    token, _ = register()
    book = create_book(token)
    client.post(f"/api/users/wishlist/{book['id']}", headers=bearer(token))

    assert client.delete("/api/users/wishlist/9999", headers=bearer(token)).status_code == 200
    assert len(client.get("/api/users/wishlist", headers=bearer(token)).get_json()) == 1


def test_wishlists_are_per_user(client, register, create_book):
    alice, _ = register()
    bob, _ = register()
    book = create_book(alice)
    client.post(f"/api/users/wishlist/{book['id']}", headers=bearer(alice))
    assert client.get("/api/users/wishlist", headers=bearer(bob)).get_json() == []


def test_wishlist_rejects_bad_ids(client, register):
    token, _ = register()
    assert client.post("/api/users/wishlist/not-an-id", headers=bearer(token)).status_code == 400
    resp = client.post("/api/users/wishlist/12345", headers=bearer(token))
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Book not found"


def test_wishlist_requires_authentication(client):
    assert client.get("/api/users/wishlist").status_code == 401
    assert client.post("/api/users/wishlist/1").status_code == 401
    assert client.delete("/api/users/wishlist/1").status_code == 401
