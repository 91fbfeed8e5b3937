"""Tests for the log report API."""

from fastapi.testclient import TestClient


def test_list_logs_is_paginated(client: TestClient, setup_conversation_logs):
    resp = client.get("/logs", params={"size": 2, "page": 1})
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 5
    assert len(body["items"]) == 2
    assert body["items"][0]["role"] == "SYSTEM"

    last = client.get("/logs", params={"size": 2, "page": 3}).json()
    assert len(last["items"]) == 1
    assert last["items"][0]["type"] == "USER"


def test_list_logs_for_day(client: TestClient, setup_conversation_logs):
    _, _, _, yesterday = setup_conversation_logs
    body = client.get("/logs", params={"day": yesterday.isoformat()}).json()
    assert body["total"] == 2
    assert [item["type"] for item in body["items"]] == ["BOT", "USER"]


def test_log_dates(client: TestClient, setup_conversation_logs):
    _, _, today, yesterday = setup_conversation_logs
    assert client.get("/logs/dates").json() == [today.isoformat(), yesterday.isoformat()]


def test_log_stats(client: TestClient, setup_conversation_logs):
    _, _, today, _ = setup_conversation_logs
    body = client.get("/logs/stats", params={"day": today.isoformat()}).json()
    assert body == {
        "total_messages": 3,
        "unique_users": 1,
        "human_responses": 1,
        "ai_responses": 0,
    }


def test_conversation_report(client: TestClient, setup_conversation_logs):
    identity_a, identity_b, today, yesterday = setup_conversation_logs
    client.patch(
        f"/conversations/{identity_b}/sale-status",
        json={"stage": "closed_won", "possible_sale": True},
    )

    body = client.get("/logs/report").json()

    assert [r["identity"] for r in body] == [identity_a, identity_b]
    first, second = body
    assert first["day"] == yesterday.isoformat()
    assert first["message_count"] == 2
    assert first["closed_sale"] is False
    assert second["day"] == today.isoformat()
    assert second["closed_sale"] is True
    assert second["support_activated"] is True
    assert second["human_mode"] is True
    assert [e["type"] for e in second["conversation"]] == ["USER", "HUMAN"]


def test_conversation_report_for_day(client: TestClient, setup_conversation_logs):
    identity_a, _, _, yesterday = setup_conversation_logs

    body = client.get("/logs/report", params={"day": yesterday.isoformat()}).json()

    assert [r["identity"] for r in body] == [identity_a]


def test_conversation_report_rejects_unknown_period(client: TestClient):
    assert client.get("/logs/report", params={"period": "decade"}).status_code == 422
