"""Tests for the administration routes and the API index."""

from movies_api import __version__
from tests.conftest import AUTH_TOKEN


def test_reset_requires_token(client, make_person):
    make_person("John Smith")

    assert client.post("/admin/reset").status_code == 401
    assert client.post("/admin/reset", headers={"Authorization": AUTH_TOKEN}).status_code == 401
    assert client.post("/admin/reset", headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert len(client.get("/api/people").get_json()) == 1


def test_reset_removes_everything(client, db, make_person, make_movie, make_character):
    movie = make_movie("An Amazing Story", make_person("Jane Smith", "female"))
    make_character("Heroine", movie)

    res = client.post("/admin/reset", headers={"Authorization": f"Bearer {AUTH_TOKEN}"})

    assert res.status_code == 204
    assert db["people"].count_documents({}) == 0
    assert db["movies"].count_documents({}) == 0
    assert db["characters"].count_documents({}) == 0


def test_reset_without_configured_token(client, settings):
    settings.auth_token = None
    res = client.post("/admin/reset", headers={"Authorization": "Bearer anything"})
    assert res.status_code == 401


def test_api_index(client):
    assert client.get("/api").get_json() == {"title": "Movies REST API", "version": __version__}


def test_unknown_api_route_returns_json(client):
    res = client.get("/api/nothing-here")
    assert res.status_code == 404
    assert "message" in res.get_json()


def test_method_not_allowed(client):
    res = client.delete("/api/people")

    assert res.status_code == 405
    assert "message" in res.get_json()
    allowed = {method.strip() for method in res.headers["Allow"].split(",")}
    assert {"GET", "POST"} <= allowed
    assert "DELETE" not in allowed
