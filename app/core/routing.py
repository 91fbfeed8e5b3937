from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Protocol

from app.channels.envelope import InboundMessage
from app.constants.messages import BotMessages, PromptNotes
from app.constants.modes import ConversationMode, LogRole
from app.core.handoff import DEFAULT_HANDOFF_MARKER, split_handoff_marker
from app.core.identity import normalize_identity
from app.core.identity_lock import IdentityLockManager
from app.exceptions import AIAuthenticationError
from app.infra.logging_config import get_logger
from app.services.location_validator import LocationValidation, LocationValidator

if TYPE_CHECKING:
    from app.channels.base import ChannelPlugin
    from app.services.conversation_log_service import ConversationLogService
    from app.services.mode_manager import ModeManager
    from app.services.prompt_loader import PromptLoader
    from app.services.session_manager import SessionManager

logger = get_logger("router")

_CONFIGURATION_HINTS = ("authentication", "autenticación", "api key")


class ChatCompleter(Protocol):
    async def complete(self, messages: List[dict[str, str]]) -> str: ...


def classify_error(error: BaseException) -> str:
    """User-facing reply for a failure while answering a message."""
    if isinstance(error, AIAuthenticationError):
        return BotMessages.CONFIGURATION_ERROR
    text = str(error).lower()
    if any(hint in text for hint in _CONFIGURATION_HINTS):
        return BotMessages.CONFIGURATION_ERROR
    return BotMessages.GENERIC_ERROR


class ConversationRouter:
    """
    Decides who answers an inbound message.

    AI-owned conversations go through the optional service-area gate and then
    to the AI responder; human- and support-owned conversations are only
    logged. Messages from one identity are handled one at a time.
    """

    def __init__(
        self,
        session_manager: "SessionManager",
        mode_manager: "ModeManager",
        conversation_log: "ConversationLogService",
        transport: "ChannelPlugin",
        llm: ChatCompleter,
        prompt_loader: "PromptLoader",
        location_validator: Optional[LocationValidator] = None,
        handoff_marker: str = DEFAULT_HANDOFF_MARKER,
        identity_locks: Optional[IdentityLockManager] = None,
    ) -> None:
        self._sessions = session_manager
        self._modes = mode_manager
        self._log = conversation_log
        self._transport = transport
        self._llm = llm
        self._prompt_loader = prompt_loader
        self._location_validator = location_validator
        self._handoff_marker = handoff_marker
        self._locks = identity_locks or IdentityLockManager()

    @property
    def transport(self) -> "ChannelPlugin":
        return self._transport

    async def handle_inbound(self, msg: InboundMessage) -> Optional[str]:
        """Process one inbound message. Returns the reply sent, or None when silent."""
        if msg.from_self or msg.is_group:
            return None
        text = (msg.text or "").strip()
        if not text:
            logger.debug("Ignoring message without text from %s", msg.address)
            return None
        try:
            identity = normalize_identity(msg.address)
        except ValueError:
            logger.warning("Ignoring message with unusable address %r", msg.address)
            return None

        async with self._locks.lock(identity):
            return await self._handle(identity, text, msg)

    async def _handle(
        self, identity: str, text: str, msg: InboundMessage
    ) -> Optional[str]:
        display_name = msg.display_name or identity
        await self._log.log(LogRole.CLIENT, text, identity=identity, display_name=display_name)

        mode = await self._modes.get_mode(identity)
        if mode.is_operator_owned:
            label = "SOPORTE" if mode == ConversationMode.SUPPORT else "HUMANO"
            await self._log.log(
                LogRole.SYSTEM,
                f"Mensaje ignorado - Modo {label} activo para {display_name} ({identity})",
                identity=identity,
            )
            return None

        try:
            return await self._answer(identity, text, msg.address, display_name)
        except Exception as e:
            logger.exception("Error processing message from %s", identity)
            reply = classify_error(e)
            try:
                await self._send(msg.address, reply, identity)
            except Exception:
                logger.exception("Error sending error reply to %s", identity)
            await self._log.log(LogRole.ERROR, str(e), identity=identity)
            return reply

    async def _answer(
        self, identity: str, text: str, chat_address: str, display_name: str
    ) -> Optional[str]:
        validation = (
            self._location_validator.validate_message(text)
            if self._location_validator
            else LocationValidation(original_message=text)
        )
        if validation.is_rejected:
            reply = LocationValidator.rejection_message(display_name)
            await self._send(chat_address, reply, identity)
            await self._log.log(LogRole.BOT, reply, identity=identity, display_name=display_name)
            await self._log.log(
                LogRole.SYSTEM,
                f"Ubicación rechazada para {display_name} ({identity}): "
                f"{', '.join(validation.invalid_locations)} en mensaje: {text}",
                identity=identity,
            )
            return reply

        prior = await self._sessions.get_messages(identity, chat_address)
        first_contact = len(prior) == 0
        await self._sessions.add_message(identity, "user", text, chat_address)

        system_prompt = self._prompt_loader.load()
        if validation.is_valid:
            system_prompt += PromptNotes.VALID_LOCATION.format(
                locations=", ".join(validation.found_locations)
            )
        if first_contact:
            system_prompt += PromptNotes.FIRST_CONTACT_DISCLAIMER

        history = await self._sessions.get_messages(identity, chat_address)
        raw = await self._llm.complete([{"role": "system", "content": system_prompt}, *history])

        reply, handoff = split_handoff_marker(raw, self._handoff_marker)
        if handoff:
            if not reply:
                reply = BotMessages.HANDOFF_NOTICE
            await self._modes.set_mode(identity, ConversationMode.SUPPORT, activated_by="system")
            await self._sessions.update_session_mode(
                identity, chat_address, ConversationMode.SUPPORT.value
            )
            await self._log.log(
                LogRole.SYSTEM,
                f"Modo SOPORTE activado automáticamente para {identity}",
                identity=identity,
            )
        await self._sessions.add_message(identity, "assistant", reply, chat_address)

        await self._send(chat_address, reply, identity)
        await self._log.log(LogRole.BOT, reply, identity=identity, display_name=display_name)
        return reply

    async def _send(self, chat_address: str, text: str, identity: str) -> bool:
        result = await self._transport.send_text(chat_address, text)
        if not result.success:
            logger.error("Error sending message to %s: %s", identity, result.error)
        return result.success
