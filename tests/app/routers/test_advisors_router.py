"""Tests for the advisors API."""

from fastapi.testclient import TestClient

from app.constants.advisors import DEFAULT_ADVISORS


def test_list_advisors(client: TestClient):
    resp = client.get("/advisors")
    assert resp.status_code == 200
    assert resp.json() == DEFAULT_ADVISORS


def test_assign_and_read_advisor(client: TestClient):
    assert client.get("/advisors/assignments/5215555555555").status_code == 404

    first = client.post("/advisors/assignments/5215555555555").json()
    second = client.post("/advisors/assignments/5215555555556").json()
    assert first == DEFAULT_ADVISORS[0]
    assert second == DEFAULT_ADVISORS[1]
    assert client.post("/advisors/assignments/5215555555555").json() == first
    assert client.get("/advisors/assignments/5215555555555").json() == first

    assignments = client.get("/advisors/assignments").json()
    assert {a["contact"] for a in assignments} == {"5215555555555", "5215555555556"}


def test_reset_assignments(client: TestClient):
    client.post("/advisors/assignments/5215555555555")
    assert client.delete("/advisors/assignments").status_code == 204
    assert client.get("/advisors/assignments").json() == []
