"""
Tests for the project-level endpoints: API info, health check and the
JSON 404 for unknown routes.
"""
import pytest


def test_index(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["endpoints"]["resources"] == "/api/resources/"


def test_health(client):
    resp = client.get("/health/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "OK"
    assert body["environment"] == "test"
    assert body["uptime"] >= 0


@pytest.mark.django_db
def test_unknown_route_is_json_404(client):
    resp = client.get("/nowhere/")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Route not found", "path": "/nowhere/"}
