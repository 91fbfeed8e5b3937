"""Schemas for conversation log entries and reports."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class ConversationLogEntry(BaseModel):
    """An entry waiting to be written (also used for the retry queue)."""

    timestamp: datetime
    role: str
    message: str
    identity: Optional[str] = None
    display_name: Optional[str] = None
    response: Optional[str] = None
    responder_id: Optional[str] = None


class ConversationLogRead(BaseModel):
    id: UUID
    timestamp: datetime
    type: str
    role: str
    identity: str
    display_name: Optional[str] = None
    message: Optional[str] = None
    response: Optional[str] = None
    responder_id: Optional[str] = None

    model_config = {"from_attributes": True}


class ConversationStats(BaseModel):
    total_messages: int = 0
    unique_users: int = 0
    human_responses: int = 0
    ai_responses: int = 0
