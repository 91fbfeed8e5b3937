"""Tests for OperatorService."""

import pytest

from app.constants.messages import BotMessages
from app.constants.modes import ConversationMode
from app.exceptions import TransportError
from app.services.operator_service import OperatorService


@pytest.mark.asyncio
async def test_set_mode_logs_transition(operator_service: OperatorService, mode_manager, store):
    result = await operator_service.set_mode("a", "human", "maria")

    assert result.mode == ConversationMode.HUMAN
    assert result.is_human_mode
    assert result.activated_by == "maria"
    assert await mode_manager.get_mode("a") == ConversationMode.HUMAN
    rows = await store.find_all("conversation_logs", {"identity": "a"})
    assert [(r["role"], r["message"]) for r in rows] == [("SYSTEM", "Modo HUMANO establecido para a")]


@pytest.mark.asyncio
async def test_list_modes(operator_service: OperatorService):
    await operator_service.set_mode("b", "support")
    await operator_service.set_mode("a", "human")
    assert [(m.identity, m.mode) for m in await operator_service.list_modes()] == [
        ("a", ConversationMode.HUMAN),
        ("b", ConversationMode.SUPPORT),
    ]


@pytest.mark.asyncio
async def test_send_operator_message_uses_session_address(
    operator_service: OperatorService, session_manager, transport, store
):
    await session_manager.get_session("a", "chat-a")
    await operator_service.set_mode("a", "support")

    await operator_service.send_operator_message("a", "Hola, soy Luis", responder_id="luis")

    assert transport.sent == [("chat-a", "Hola, soy Luis")]
    row = (await store.find_all("conversation_logs", {"role": "soporte"}))[0]
    assert row["responder_id"] == "luis"
    assert row["display_name"] == "luis"


@pytest.mark.asyncio
async def test_send_operator_message_without_session(operator_service: OperatorService, transport, store):
    await operator_service.send_operator_message("a", "Hola")
    assert transport.sent == [("a@test", "Hola")]
    row = (await store.find_all("conversation_logs"))[0]
    assert row["responder_id"] == "Soporte"


@pytest.mark.asyncio
async def test_failed_delivery_raises_and_is_not_logged(operator_service: OperatorService, transport, store):
    transport.fail_with = "offline"
    with pytest.raises(TransportError):
        await operator_service.send_operator_message("a", "Hola")
    assert await store.find_all("conversation_logs") == []


@pytest.mark.asyncio
async def test_missing_transport_raises(mode_manager, session_manager, conversation_log):
    service = OperatorService(mode_manager, session_manager, conversation_log, None)
    with pytest.raises(TransportError):
        await service.send_operator_message("a", "Hola")


@pytest.mark.asyncio
async def test_end_conversation(operator_service: OperatorService, session_manager, mode_manager, transport, store):
    await session_manager.add_message("a", "user", "Hola", chat_address="chat-a")
    await operator_service.set_mode("a", "support")

    await operator_service.end_conversation("a")

    assert transport.sent == [("chat-a", BotMessages.SESSION_ENDED_BY_OPERATOR)]
    assert await session_manager.get_messages("a") == []
    assert await mode_manager.get_mode("a") == ConversationMode.AI
    rows = await store.find_all("conversation_logs", {"identity": "a"}, order_by="timestamp")
    assert [r["role"] for r in rows] == ["SYSTEM", "bot", "SYSTEM"]
    assert rows[-1]["message"] == "Conversación finalizada manualmente para a"


@pytest.mark.asyncio
async def test_remove_contact(operator_service: OperatorService, mode_manager):
    await operator_service.set_mode("a", "human")
    await mode_manager.flush()
    await operator_service.remove_contact("a")
    assert await mode_manager.get_mode("a") == ConversationMode.AI
