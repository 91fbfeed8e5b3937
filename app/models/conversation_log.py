"""
ConversationLog model for the audit trail of every message the bot sees or sends.

Append-only: rows are inserted and read back for reports, never updated.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, String, Text, Uuid

from app.db import Base


class ConversationLog(Base):
    __tablename__ = "conversation_logs"

    __table_args__ = (
        Index("ix_conversation_logs_identity_timestamp", "identity", "timestamp"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    timestamp = Column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )
    identity = Column(String(64), nullable=False)
    display_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, index=True)  # cliente | bot | soporte | SYSTEM | ERROR
    message = Column(Text, nullable=True)
    response = Column(Text, nullable=True)
    responder_id = Column(String(100), nullable=True)
