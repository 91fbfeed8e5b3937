"""Schemas for AI conversation analysis and per-conversation reports."""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.schemas.conversation_log import ConversationLogRead
from app.schemas.sale_status import SaleStage, SaleStatusRead


class Sentiment(StrEnum):
    POSITIVE = "positivo"
    NEUTRAL = "neutral"
    NEGATIVE = "negativo"


class Intent(StrEnum):
    INFORMATION = "información"
    PURCHASE = "compra"
    SUPPORT = "soporte"
    COMPLAINT = "queja"
    OTHER = "otro"


class ConversationAnalysis(BaseModel):
    """Classification of one conversation. Also the structured output the AI must return."""

    possible_sale: bool = Field(
        description="El cliente muestra interés en comprar o pide precios o información de productos."
    )
    closed_sale: bool = Field(
        description="El cliente confirmó la compra o llegó a un acuerdo."
    )
    appointment_scheduled: bool = Field(
        description="Se acordó una reunión, visita o llamada futura."
    )
    sentiment: Sentiment = Sentiment.NEUTRAL
    intent: Intent = Intent.OTHER
    main_topics: List[str] = Field(default_factory=list)
    issues_detected: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    satisfaction_score: float = Field(default=5.0, ge=0, le=10)


class ConversationAnalysisRead(ConversationAnalysis):
    identity: str
    day: Optional[date] = None
    source: Literal["ai", "keywords"] = "ai"
    messages_analyzed: int = 0
    sale_status: SaleStatusRead


class ReportPeriod(StrEnum):
    ALL = "all"
    TODAY = "today"
    YESTERDAY = "yesterday"
    WEEK = "week"
    MONTH = "month"


class ConversationReport(BaseModel):
    """One contact's conversation in a period, joined with its sales status and mode."""

    identity: str
    display_name: Optional[str] = None
    day: date
    first_message_at: datetime
    last_message_at: datetime
    message_count: int = 0
    support_activated: bool = False
    human_mode: bool = False
    possible_sale: bool = False
    closed_sale: bool = False
    appointment_scheduled: bool = False
    analyzed: bool = False
    stage: SaleStage = SaleStage.INITIAL_CONTACT
    conversation: List[ConversationLogRead] = Field(default_factory=list)
