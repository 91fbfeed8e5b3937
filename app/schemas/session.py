"""Pydantic schemas for in-memory conversation sessions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

MessageRole = Literal["system", "user", "assistant"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionMessage(BaseModel):
    """One turn of conversation history."""

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_now)

    def as_chat_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatSession(BaseModel):
    """
    Session state for one conversation identity.

    ``messages`` is append-only apart from an explicit clear; ``last_activity``
    never moves backwards while the session is alive.
    """

    identity: str
    messages: list[SessionMessage] = Field(default_factory=list)
    last_activity: datetime = Field(default_factory=_now)
    chat_address: Optional[str] = None
    selected_service: Optional[str] = None
    session_mode: Optional[str] = None
    questions_asked: list[int] = Field(default_factory=list)
    user_data: dict[str, Any] = Field(default_factory=dict)
    persisted: bool = Field(default=False, exclude=True)

    def touch(self, when: Optional[datetime] = None) -> None:
        when = when or _now()
        if when > self.last_activity:
            self.last_activity = when

    def to_store_fields(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "chat_address": self.chat_address,
            "messages": [m.model_dump(mode="json") for m in self.messages],
            "selected_service": self.selected_service,
            "session_mode": self.session_mode,
            "questions_asked": list(self.questions_asked),
            "user_data": dict(self.user_data),
            "last_activity": self.last_activity,
        }


class SessionRead(BaseModel):
    """Session summary for API responses."""

    identity: str
    chat_address: Optional[str] = None
    message_count: int
    last_activity: datetime
    selected_service: Optional[str] = None
    session_mode: Optional[str] = None

    @classmethod
    def from_session(cls, session: ChatSession) -> "SessionRead":
        return cls(
            identity=session.identity,
            chat_address=session.chat_address,
            message_count=len(session.messages),
            last_activity=session.last_activity,
            selected_service=session.selected_service,
            session_mode=session.session_mode,
        )
