"""
AI classification of finished conversations.

The analyzer reads one contact's log, asks the model for a structured
``ConversationAnalysis`` and records the sales signals (possible sale,
closed sale, appointment) on the contact's sale status. When the model
cannot produce an answer a keyword heuristic stands in for it.
"""

from __future__ import annotations

import re
from datetime import date
from typing import List, Optional, Tuple

from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from app.exceptions import AIAuthenticationError
from app.infra.logging_config import get_logger
from app.schemas.conversation_analysis import (
    ConversationAnalysis,
    ConversationAnalysisRead,
    Intent,
    Sentiment,
)
from app.schemas.conversation_log import ConversationLogRead
from app.schemas.sale_status import SaleStage, SaleStatusRead, SaleStatusUpdate
from app.services.conversation_log_service import ConversationLogService
from app.services.sale_status_service import SaleStatusService

logger = get_logger("analyzer")

ANALYZER_INSTRUCTIONS = (
    "Eres un analizador experto de conversaciones de servicio al cliente. "
    "Analiza la conversación y determina si es una posible venta (el cliente muestra "
    "interés en comprar o solicita precios o información de productos), si es una venta "
    "cerrada (el cliente confirmó la compra o llegó a un acuerdo), si se agendó una cita "
    "(reunión, visita o llamada futura), el sentimiento general del cliente y su "
    "intención principal."
)

_SPEAKERS = {"USER": "Cliente", "BOT": "Asistente", "HUMAN": "Soporte"}
_AUTH_STATUS_CODES = (401, 403)

_POSITIVE_WORDS = {"gracias", "excelente", "perfecto", "bueno", "satisfecho", "contento"}
_NEGATIVE_WORDS = {"malo", "terrible", "problema", "error", "molesto", "insatisfecho"}
_BUYING_WORDS = {
    "comprar", "precio", "costo", "cuánto", "pagar", "tarifa", "presupuesto",
    "cotización", "nave", "renta", "venta",
}
_SUPPORT_WORDS = {"ayuda", "problema", "error", "falla", "soporte", "asistencia"}
_COMPLAINT_WORDS = {"queja", "reclamo", "malo", "terrible", "molesto"}
_APPOINTMENT_WORDS = {"cita", "reunión", "agendar", "visita", "llamada", "ver", "conocer"}
_CLOSING_WORDS = {"compro", "acepto"}

_WORD = re.compile(r"\w+")


def format_transcript(entries: List[ConversationLogRead]) -> str:
    """One ``Speaker: message`` line per customer, bot or operator turn."""
    lines = [
        f"{_SPEAKERS[entry.type]}: {entry.message}"
        for entry in entries
        if entry.type in _SPEAKERS and entry.message
    ]
    return "\n".join(lines)


def keyword_analysis(transcript: str) -> ConversationAnalysis:
    """Rough classification from word lists, used when the model is unavailable."""
    words = _WORD.findall(transcript.lower())
    present = set(words)

    sentiment = Sentiment.NEUTRAL
    if present & _POSITIVE_WORDS:
        sentiment = Sentiment.POSITIVE
    elif present & _NEGATIVE_WORDS:
        sentiment = Sentiment.NEGATIVE

    buying = bool(present & _BUYING_WORDS)
    intent = Intent.INFORMATION
    if buying:
        intent = Intent.PURCHASE
    elif present & _SUPPORT_WORDS:
        intent = Intent.SUPPORT
    elif present & _COMPLAINT_WORDS:
        intent = Intent.COMPLAINT

    score = {Sentiment.POSITIVE: 8.0, Sentiment.NEGATIVE: 2.0}.get(sentiment, 5.0)
    return ConversationAnalysis(
        possible_sale=buying,
        closed_sale=bool(present & _CLOSING_WORDS) or ("quiero" in present and buying),
        appointment_scheduled=bool(present & _APPOINTMENT_WORDS),
        sentiment=sentiment,
        intent=intent,
        issues_detected=["insatisfacción_detectada"] if sentiment == Sentiment.NEGATIVE else [],
        keywords=words[:5],
        satisfaction_score=score,
    )


class ConversationAnalyzer:
    def __init__(
        self,
        conversation_log: ConversationLogService,
        sales: SaleStatusService,
        model: Model,
        model_settings: Optional[ModelSettings] = None,
    ) -> None:
        self._log = conversation_log
        self._sales = sales
        self._agent = Agent(
            model,
            output_type=ConversationAnalysis,
            system_prompt=ANALYZER_INSTRUCTIONS,
            model_settings=model_settings or ModelSettings(temperature=0.3, max_tokens=600),
        )

    async def analyze(
        self, identity: str, day: Optional[date] = None
    ) -> Optional[ConversationAnalysisRead]:
        """
        Classify a contact's conversation (optionally one UTC day of it) and
        store the result on its sale status. Returns None when there is nothing
        to analyze.

        Raises AIAuthenticationError when the model rejects the credentials and
        PersistenceError when the sale status cannot be saved.
        """
        entries = await self._log.get_conversation(identity, day=day)
        turns = [e for e in entries if e.type in _SPEAKERS and e.message]
        if not turns:
            return None
        transcript = format_transcript(turns)

        analysis, source = await self._classify(transcript)
        status = await self._record(identity, analysis)
        logger.info(
            "Conversation of %s analyzed (%s): possible_sale=%s closed_sale=%s appointment=%s",
            identity,
            source,
            analysis.possible_sale,
            analysis.closed_sale,
            analysis.appointment_scheduled,
        )
        return ConversationAnalysisRead(
            **analysis.model_dump(),
            identity=identity,
            day=day,
            source=source,
            messages_analyzed=len(turns),
            sale_status=status,
        )

    async def _classify(self, transcript: str) -> Tuple[ConversationAnalysis, str]:
        try:
            result = await self._agent.run(f"Conversación:\n{transcript}")
        except ModelHTTPError as e:
            if e.status_code in _AUTH_STATUS_CODES:
                logger.error("LLM backend rejected credentials: %s", e)
                raise AIAuthenticationError() from e
            logger.warning("Analysis model returned HTTP %s, using keywords: %s", e.status_code, e)
            return keyword_analysis(transcript), "keywords"
        except Exception:
            logger.exception("Error analyzing conversation, using keywords")
            return keyword_analysis(transcript), "keywords"
        return result.output, "ai"

    async def _record(self, identity: str, analysis: ConversationAnalysis) -> SaleStatusRead:
        current = await self._sales.get_sale_status(identity)
        update = SaleStatusUpdate(
            analyzed=True,
            possible_sale=analysis.possible_sale,
            appointment_scheduled=analysis.appointment_scheduled,
        )
        if analysis.closed_sale and not current.stage.is_closed:
            update.stage = SaleStage.CLOSED_WON
        elif analysis.possible_sale and current.stage == SaleStage.INITIAL_CONTACT:
            update.stage = SaleStage.INTERESTED
        return await self._sales.update_sale_status(identity, update)
