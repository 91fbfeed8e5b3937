"""Exception hierarchy shared by the store, managers, AI responder and transport."""

from __future__ import annotations


class ConversaError(Exception):
    """Base class for errors raised by this service."""


class ConfigurationError(ConversaError):
    """Required configuration is missing or unusable. Fatal at startup."""


class PersistenceError(ConversaError):
    """The durable store could not complete an operation."""


class AIResponderError(ConversaError):
    """The chat-completion backend failed to produce a reply."""


class AIAuthenticationError(AIResponderError):
    """The backend rejected our credentials. Not retryable."""

    def __init__(self, message: str = "Error de autenticación con API key") -> None:
        super().__init__(message)


class AIGenerationError(AIResponderError):
    """Any other backend failure."""

    def __init__(self, message: str = "Error generando respuesta de IA") -> None:
        super().__init__(message)


class TransportError(ConversaError):
    """The messaging transport could not deliver a message."""
