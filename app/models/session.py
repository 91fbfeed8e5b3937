"""Conversation session model: one row per conversation identity."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Uuid

from app.db import Base
from app.models.mixins import TimestampMixin
from app.models.types import JSONType


class ConversationSession(Base, TimestampMixin):
    """Rolling AI context and flow state for a single identity. Messages are kept inline as JSON."""

    __tablename__ = "user_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    identity = Column(String(64), unique=True, nullable=False, index=True)
    chat_address = Column(String(256), nullable=True)
    messages = Column(JSONType, nullable=False, default=list)
    selected_service = Column(String(256), nullable=True)
    session_mode = Column(String(32), nullable=True)
    questions_asked = Column(JSONType, nullable=False, default=list)
    user_data = Column(JSONType, nullable=False, default=dict)
    last_activity = Column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )
