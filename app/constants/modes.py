"""Conversation owner modes and conversation-log roles."""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ConversationMode(StrEnum):
    """Which actor owns a conversation."""

    AI = "ai"
    HUMAN = "human"
    SUPPORT = "support"

    @property
    def is_operator_owned(self) -> bool:
        return self is not ConversationMode.AI

    @classmethod
    def coerce(cls, value: Any) -> "ConversationMode":
        """
        Decode a stored or user-supplied mode.

        Older rows stored a boolean (True meant human) or left the column empty;
        both map onto the closed set of modes. Unknown strings raise ValueError.
        """
        if isinstance(value, cls):
            return value
        if value is None or value is False:
            return cls.AI
        if value is True:
            return cls.HUMAN
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in ("", "false", "0"):
                return cls.AI
            if normalized in ("true", "1"):
                return cls.HUMAN
            return cls(normalized)
        raise ValueError(f"Unknown conversation mode: {value!r}")


class LogRole(StrEnum):
    """Roles recorded in the conversation log."""

    CLIENT = "cliente"
    BOT = "bot"
    SUPPORT = "soporte"
    SYSTEM = "SYSTEM"
    ERROR = "ERROR"
