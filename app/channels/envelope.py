from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


class InboundMessage(BaseModel):
    """Normalized inbound message (transport → core)."""

    channel: str
    address: str
    text: Optional[str] = None
    display_name: Optional[str] = None
    from_self: bool = False
    is_group: bool = False
    message_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    raw: dict[str, Any] = Field(default_factory=dict)


class OutboundSendResult(BaseModel):
    """Result of sending a message (success + optional platform message id)."""

    success: bool
    platform_message_id: Optional[str] = None
    error: Optional[str] = None
