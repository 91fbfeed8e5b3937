"""Tests for the conversations API."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from app.constants.messages import BotMessages
from app.exceptions import AIAuthenticationError
from app.services.conversation_analyzer import ConversationAnalyzer


def test_send_operator_message(client: TestClient, transport):
    resp = client.post(
        "/conversations/5215555555555/messages",
        json={"text": "Hola, soy Luis", "responder_id": "luis"},
    )
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert transport.sent == [("5215555555555@test", "Hola, soy Luis")]

    logs = client.get("/conversations/5215555555555/logs").json()
    assert [(log["type"], log["responder_id"]) for log in logs] == [("HUMAN", "luis")]


def test_send_operator_message_delivery_failure(client: TestClient, transport):
    transport.fail_with = "offline"
    resp = client.post("/conversations/5215555555555/messages", json={"text": "Hola"})
    assert resp.status_code == 503


def test_end_conversation(client: TestClient, transport):
    client.put("/modes/5215555555555", json={"mode": "support"})

    resp = client.post("/conversations/5215555555555/end")
    assert resp.status_code == 200
    assert transport.sent == [("5215555555555@test", BotMessages.SESSION_ENDED_BY_OPERATOR)]
    assert client.get("/modes/5215555555555").json()["mode"] == "ai"


def test_session_not_found(client: TestClient):
    assert client.get("/conversations/5215555555555/session").status_code == 404


def test_session_summary(client: TestClient, setup_stored_session):
    resp = client.get(f"/conversations/{setup_stored_session.identity}/session")
    assert resp.status_code == 200
    body = resp.json()
    assert body["message_count"] == 2
    assert body["chat_address"] == setup_stored_session.chat_address


def test_sale_status_round_trip(client: TestClient):
    assert client.get("/conversations/5215555555555/sale-status").json()["stage"] == "initial_contact"

    resp = client.patch(
        "/conversations/5215555555555/sale-status",
        json={"stage": "qualified", "interest_level": 7, "products_interested": ["limpieza"]},
    )
    assert resp.status_code == 200
    body = client.get("/conversations/5215555555555/sale-status").json()
    assert body["stage"] == "qualified"
    assert body["products_interested"] == ["limpieza"]


def test_sale_status_validation(client: TestClient):
    resp = client.patch("/conversations/5215555555555/sale-status", json={"interest_level": 11})
    assert resp.status_code == 422


def test_analyze_conversation(client: TestClient, setup_conversation_logs):
    _, identity_b, _, _ = setup_conversation_logs

    resp = client.post(f"/conversations/{identity_b}/analysis")
    assert resp.status_code == 200
    body = resp.json()
    assert body["source"] == "ai"
    assert body["possible_sale"] is True
    assert body["messages_analyzed"] == 2

    status = client.get(f"/conversations/{identity_b}/sale-status").json()
    assert status["analyzed"] is True
    assert status["appointment_scheduled"] is True
    assert status["stage"] == "interested"


def test_analyze_conversation_without_messages(client: TestClient):
    resp = client.post("/conversations/5215555555555/analysis")
    assert resp.status_code == 404


def test_analyze_conversation_with_rejected_credentials(
    client: TestClient, setup_conversation_logs
):
    _, identity_b, _, _ = setup_conversation_logs
    with patch.object(
        ConversationAnalyzer, "_classify", side_effect=AIAuthenticationError()
    ):
        resp = client.post(f"/conversations/{identity_b}/analysis")
    assert resp.status_code == 503
