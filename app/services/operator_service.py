"""Operator control surface: ownership changes and messages sent by staff."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional

from app.constants.messages import BotMessages
from app.constants.modes import ConversationMode, LogRole
from app.exceptions import TransportError
from app.infra.logging_config import get_logger
from app.schemas.mode import ModeRead

if TYPE_CHECKING:
    from app.channels.base import ChannelPlugin
    from app.services.conversation_log_service import ConversationLogService
    from app.services.mode_manager import ModeManager
    from app.services.session_manager import SessionManager

logger = get_logger("operator")

_MODE_LABELS = {
    ConversationMode.AI: "IA",
    ConversationMode.HUMAN: "HUMANO",
    ConversationMode.SUPPORT: "SOPORTE",
}


class OperatorService:
    """
    Actions staff take from the dashboard. Messages sent here bypass the
    ownership gate of the conversation router.
    """

    def __init__(
        self,
        mode_manager: "ModeManager",
        session_manager: "SessionManager",
        conversation_log: "ConversationLogService",
        transport: Optional["ChannelPlugin"],
    ) -> None:
        self._modes = mode_manager
        self._sessions = session_manager
        self._log = conversation_log
        self._transport = transport

    def _read(self, identity: str, mode: ConversationMode) -> ModeRead:
        entry = self._modes.cached_entry(identity)
        return ModeRead(
            identity=identity,
            mode=mode,
            is_human_mode=mode == ConversationMode.HUMAN,
            activated_at=entry.activated_at if entry else None,
            activated_by=entry.activated_by if entry else None,
        )

    async def get_mode(self, identity: str) -> ModeRead:
        return self._read(identity, await self._modes.get_mode(identity))

    async def list_modes(self) -> List[ModeRead]:
        modes: Dict[str, ConversationMode] = await self._modes.list_modes()
        return [self._read(identity, mode) for identity, mode in sorted(modes.items())]

    async def set_mode(
        self,
        identity: str,
        mode: ConversationMode | str,
        activated_by: Optional[str] = None,
    ) -> ModeRead:
        mode = ConversationMode.coerce(mode)
        await self._modes.set_mode(identity, mode, activated_by=activated_by or "operator")
        await self._log.log(
            LogRole.SYSTEM,
            f"Modo {_MODE_LABELS[mode]} establecido para {identity}",
            identity=identity,
        )
        return self._read(identity, mode)

    async def remove_contact(self, identity: str) -> None:
        await self._modes.remove(identity)
        await self._log.log(
            LogRole.SYSTEM,
            f"Contacto {identity} removido de gestión humana",
            identity=identity,
        )

    async def _chat_address(self, identity: str) -> str:
        transport = self._require_transport()
        session = await self._sessions.find_session(identity)
        if session is not None and session.chat_address:
            return session.chat_address
        return transport.address_for(identity)

    def _require_transport(self) -> "ChannelPlugin":
        if self._transport is None:
            raise TransportError("Messaging transport is not available")
        return self._transport

    async def _deliver(self, identity: str, text: str) -> None:
        chat_address = await self._chat_address(identity)
        result = await self._require_transport().send_text(chat_address, text)
        if not result.success:
            raise TransportError(result.error or f"Could not deliver message to {identity}")

    async def send_operator_message(
        self, identity: str, text: str, responder_id: Optional[str] = None
    ) -> None:
        """Send a staff message regardless of who owns the conversation."""
        sender = responder_id or "Soporte"
        await self._deliver(identity, text)
        await self._log.log(
            LogRole.SUPPORT,
            text,
            identity=identity,
            display_name=sender,
            responder_id=sender,
        )

    async def end_conversation(self, identity: str) -> None:
        """Send the closing text, clear the history and hand the contact back to the AI."""
        await self._deliver(identity, BotMessages.SESSION_ENDED_BY_OPERATOR)
        await self._log.log(LogRole.BOT, BotMessages.SESSION_ENDED_BY_OPERATOR, identity=identity)
        await self._sessions.clear_session(identity)
        await self._modes.set_mode(identity, ConversationMode.AI)
        await self._log.log(
            LogRole.SYSTEM,
            f"Conversación finalizada manualmente para {identity}",
            identity=identity,
        )
        logger.info("Conversation with %s ended by operator", identity)
