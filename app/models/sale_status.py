"""Sales pipeline status per contact."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, Uuid

from app.db import Base
from app.models.mixins import TimestampMixin
from app.models.types import JSONType


class SaleStatus(Base, TimestampMixin):
    __tablename__ = "sale_status"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    identity = Column(String(64), unique=True, nullable=False, index=True)
    stage = Column(String(32), nullable=False, default="initial_contact", index=True)
    interest_level = Column(Integer, nullable=False, default=0)
    products_interested = Column(JSONType, nullable=False, default=list)
    objections = Column(JSONType, nullable=False, default=list)
    next_action = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    possible_sale = Column(Boolean, nullable=False, default=False)
    analyzed = Column(Boolean, nullable=False, default=False)
    appointment_scheduled = Column(Boolean, nullable=False, default=False)
    last_interaction = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
