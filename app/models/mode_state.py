"""ModeState model: who owns a conversation (ai, human or support)."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String, Uuid

from app.db import Base
from app.models.mixins import TimestampMixin


class ModeState(Base, TimestampMixin):
    __tablename__ = "mode_states"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    identity = Column(String(64), unique=True, nullable=False, index=True)
    mode = Column(String(20), nullable=False, default="ai", index=True)  # ai | human | support
    activated_at = Column(DateTime(timezone=True), nullable=True)
    activated_by = Column(String(100), nullable=True)
