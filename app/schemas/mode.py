"""Schemas for conversation owner state."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.constants.modes import ConversationMode


class ModeCacheEntry(BaseModel):
    """Cached owner state for one identity. ``updated_at`` is when this process last wrote it."""

    mode: ConversationMode = ConversationMode.AI
    activated_at: Optional[datetime] = None
    activated_by: Optional[str] = None
    updated_at: Optional[datetime] = None


class ModeUpdate(BaseModel):
    mode: ConversationMode
    activated_by: Optional[str] = Field(default=None, max_length=100)


class ModeRead(BaseModel):
    identity: str
    mode: ConversationMode
    is_human_mode: bool
    activated_at: Optional[datetime] = None
    activated_by: Optional[str] = None
