from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field


class SaleStage(StrEnum):
    INITIAL_CONTACT = "initial_contact"
    INTERESTED = "interested"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"

    @property
    def is_closed(self) -> bool:
        return self in (SaleStage.CLOSED_WON, SaleStage.CLOSED_LOST)


class SaleStatusUpdate(BaseModel):
    """Partial update; only fields that are set are written."""

    stage: Optional[SaleStage] = None
    interest_level: Optional[int] = Field(default=None, ge=0, le=10)
    products_interested: Optional[list[str]] = None
    objections: Optional[list[str]] = None
    next_action: Optional[str] = None
    notes: Optional[str] = None
    possible_sale: Optional[bool] = None
    analyzed: Optional[bool] = None
    appointment_scheduled: Optional[bool] = None


class SaleStatusRead(BaseModel):
    identity: str
    stage: SaleStage = SaleStage.INITIAL_CONTACT
    interest_level: int = 0
    products_interested: list[str] = Field(default_factory=list)
    objections: list[str] = Field(default_factory=list)
    next_action: Optional[str] = None
    notes: Optional[str] = None
    possible_sale: bool = False
    analyzed: bool = False
    appointment_scheduled: bool = False
    last_interaction: Optional[datetime] = None
    created_at: Optional[datetime] = None


class SalesStats(BaseModel):
    total: int = 0
    by_stage: dict[str, int] = Field(
        default_factory=lambda: {stage.value: 0 for stage in SaleStage}
    )
    avg_interest_level: float = 0.0
    conversion_rate: float = 0.0
