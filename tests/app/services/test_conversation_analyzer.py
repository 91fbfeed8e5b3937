"""Tests for ConversationAnalyzer."""

import pytest
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.models.function import FunctionModel

from app.exceptions import AIAuthenticationError
from app.schemas.conversation_analysis import Intent, Sentiment
from app.schemas.sale_status import SaleStage, SaleStatusUpdate
from app.services.conversation_analyzer import (
    ConversationAnalyzer,
    format_transcript,
    keyword_analysis,
)


def failing_model(status_code: int) -> FunctionModel:
    def reply(messages, info):
        raise ModelHTTPError(status_code=status_code, model_name="test-model")

    return FunctionModel(reply)


@pytest.mark.asyncio
async def test_analysis_is_recorded_on_sale_status(
    conversation_analyzer: ConversationAnalyzer,
    sale_status_service,
    setup_conversation_logs,
    analysis_calls,
):
    _, identity_b, _, _ = setup_conversation_logs

    analysis = await conversation_analyzer.analyze(identity_b)

    assert analysis.source == "ai"
    assert analysis.messages_analyzed == 2
    assert analysis.possible_sale is True
    assert analysis.sentiment == Sentiment.POSITIVE
    assert analysis.intent == Intent.PURCHASE
    assert analysis.main_topics == ["renta de nave"]

    status = await sale_status_service.get_sale_status(identity_b)
    assert status.analyzed is True
    assert status.possible_sale is True
    assert status.appointment_scheduled is True
    assert status.stage == SaleStage.INTERESTED
    assert analysis.sale_status == status

    prompt = analysis_calls[0][-1].parts[-1].content
    assert "Cliente: Necesito una cotización" in prompt
    assert "Soporte: Con gusto te ayudo" in prompt
    assert "Modo HUMANO" not in prompt


@pytest.mark.asyncio
async def test_closed_sale_moves_stage_to_closed_won(
    conversation_analyzer: ConversationAnalyzer,
    sale_status_service,
    setup_conversation_logs,
    analysis_output,
):
    identity_a, _, _, yesterday = setup_conversation_logs
    analysis_output.update(closed_sale=True, appointment_scheduled=False)

    analysis = await conversation_analyzer.analyze(identity_a, day=yesterday)

    assert analysis.day == yesterday
    assert analysis.sale_status.stage == SaleStage.CLOSED_WON
    assert analysis.sale_status.appointment_scheduled is False


@pytest.mark.asyncio
async def test_closed_lead_keeps_its_stage(
    conversation_analyzer: ConversationAnalyzer,
    sale_status_service,
    setup_conversation_logs,
    analysis_output,
):
    identity_a, _, _, _ = setup_conversation_logs
    await sale_status_service.update_sale_status(
        identity_a, SaleStatusUpdate(stage=SaleStage.CLOSED_LOST)
    )
    analysis_output.update(closed_sale=True)

    analysis = await conversation_analyzer.analyze(identity_a)

    assert analysis.sale_status.stage == SaleStage.CLOSED_LOST
    assert analysis.sale_status.analyzed is True


@pytest.mark.asyncio
async def test_nothing_to_analyze(conversation_analyzer: ConversationAnalyzer, analysis_calls):
    assert await conversation_analyzer.analyze("5210000000000") is None
    assert analysis_calls == []


@pytest.mark.asyncio
async def test_model_failure_falls_back_to_keywords(
    conversation_log, sale_status_service, setup_conversation_logs
):
    _, identity_b, _, _ = setup_conversation_logs
    analyzer = ConversationAnalyzer(conversation_log, sale_status_service, failing_model(500))

    analysis = await analyzer.analyze(identity_b)

    assert analysis.source == "keywords"
    assert analysis.possible_sale is True
    assert analysis.intent == Intent.PURCHASE
    assert (await sale_status_service.get_sale_status(identity_b)).analyzed is True


@pytest.mark.asyncio
async def test_rejected_credentials_raise(
    conversation_log, sale_status_service, setup_conversation_logs
):
    _, identity_b, _, _ = setup_conversation_logs
    analyzer = ConversationAnalyzer(conversation_log, sale_status_service, failing_model(401))

    with pytest.raises(AIAuthenticationError):
        await analyzer.analyze(identity_b)
    assert (await sale_status_service.get_sale_status(identity_b)).analyzed is False


def test_keyword_analysis():
    analysis = keyword_analysis(
        "Cliente: Quiero comprar, ¿cuánto cuesta?\n"
        "Asistente: Podemos agendar una visita\n"
        "Cliente: Perfecto, gracias"
    )
    assert analysis.possible_sale is True
    assert analysis.closed_sale is True
    assert analysis.appointment_scheduled is True
    assert analysis.sentiment == Sentiment.POSITIVE
    assert analysis.satisfaction_score == 8.0

    complaint = keyword_analysis("Cliente: Tengo una queja, el servicio fue terrible")
    assert complaint.possible_sale is False
    assert complaint.sentiment == Sentiment.NEGATIVE
    assert complaint.intent == Intent.COMPLAINT
    assert complaint.issues_detected == ["insatisfacción_detectada"]


@pytest.mark.asyncio
async def test_format_transcript_labels_speakers(conversation_log, setup_conversation_logs):
    _, identity_b, _, _ = setup_conversation_logs
    entries = await conversation_log.get_conversation(identity_b)

    assert format_transcript(entries) == (
        "Cliente: Necesito una cotización\nSoporte: Con gusto te ayudo"
    )
