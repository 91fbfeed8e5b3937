"""SessionManager: per-identity conversation history and flow state."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from app.constants.messages import BotMessages
from app.constants.modes import ConversationMode, LogRole
from app.exceptions import PersistenceError
from app.infra.logging_config import get_logger
from app.schemas.session import ChatSession, MessageRole, SessionMessage
from app.store.durable_store import DurableStore, Record
from app.utils.dates import as_utc, utcnow

if TYPE_CHECKING:
    from app.channels.base import ChannelPlugin
    from app.services.conversation_log_service import ConversationLogService
    from app.services.mode_manager import ModeManager

logger = get_logger("session_manager")

COLLECTION = "sessions"


def _session_from_record(record: Record) -> ChatSession:
    messages = []
    for raw in record.get("messages") or []:
        try:
            messages.append(SessionMessage.model_validate(raw))
        except ValueError:
            logger.warning("Dropping malformed stored message for %s", record["identity"])
    return ChatSession(
        identity=record["identity"],
        messages=messages,
        last_activity=as_utc(record.get("last_activity")) or utcnow(),
        chat_address=record.get("chat_address"),
        selected_service=record.get("selected_service"),
        session_mode=record.get("session_mode"),
        questions_asked=list(record.get("questions_asked") or []),
        user_data=dict(record.get("user_data") or {}),
        persisted=True,
    )


class SessionManager:
    """
    Cache of ChatSession objects backed by the ``sessions`` collection.

    Reads are served from memory once a session is loaded. Every mutation is
    written through; store failures are logged and the in-memory copy keeps
    serving (degraded, never an error to the caller).
    """

    def __init__(
        self,
        store: DurableStore,
        max_messages: int = 10,
        session_timeout: timedelta = timedelta(minutes=5),
    ) -> None:
        self._store = store
        self._max_messages = max_messages
        self._session_timeout = session_timeout
        self._sessions: Dict[str, ChatSession] = {}

    @property
    def max_messages(self) -> int:
        return self._max_messages

    def cached_identities(self) -> List[str]:
        return list(self._sessions)

    async def get_session(
        self, identity: str, chat_address: Optional[str] = None
    ) -> ChatSession:
        session = self._sessions.get(identity)
        if session is None:
            session = await self._load_or_create(identity, chat_address)
        if chat_address:
            session.chat_address = chat_address
        session.touch()
        return session

    async def _load_or_create(
        self, identity: str, chat_address: Optional[str]
    ) -> ChatSession:
        record: Optional[Record] = None
        degraded = False
        try:
            record = await self._store.find_one(COLLECTION, {"identity": identity})
        except PersistenceError as e:
            logger.error("Error loading session for %s, using memory only: %s", identity, e)
            degraded = True

        # Another coroutine may have created it while the read was suspended.
        existing = self._sessions.get(identity)
        if existing is not None:
            return existing

        if record is not None:
            session = _session_from_record(record)
        else:
            session = ChatSession(identity=identity, chat_address=chat_address)
        self._sessions[identity] = session

        if record is None and not degraded:
            await self._save(session)
        return session

    async def _save(self, session: ChatSession) -> None:
        fields = session.to_store_fields()
        try:
            if session.persisted:
                updated = await self._store.update(
                    COLLECTION, fields, {"identity": session.identity}
                )
                if updated:
                    return
            await self._store.insert(COLLECTION, fields)
            session.persisted = True
        except PersistenceError as e:
            logger.error("Error saving session for %s: %s", session.identity, e)

    async def add_message(
        self,
        identity: str,
        role: MessageRole,
        content: str,
        chat_address: Optional[str] = None,
    ) -> ChatSession:
        session = await self.get_session(identity, chat_address)
        now = utcnow()
        session.messages.append(SessionMessage(role=role, content=content, timestamp=now))
        session.touch(now)
        await self._save(session)
        return session

    async def get_messages(
        self, identity: str, chat_address: Optional[str] = None
    ) -> List[Dict[str, str]]:
        """The most recent ``max_messages`` turns, oldest first, as chat messages."""
        session = await self.get_session(identity, chat_address)
        recent = session.messages[-self._max_messages :] if self._max_messages > 0 else []
        return [m.as_chat_message() for m in recent]

    async def find_session(self, identity: str) -> Optional[ChatSession]:
        """Cached or stored session without creating one or touching its activity."""
        session = self._sessions.get(identity)
        if session is not None:
            return session
        try:
            record = await self._store.find_one(COLLECTION, {"identity": identity})
        except PersistenceError as e:
            logger.error("Error loading session for %s: %s", identity, e)
            return None
        if record is None:
            return None
        return self._sessions.setdefault(identity, _session_from_record(record))

    async def clear_session(self, identity: str) -> None:
        """Empty the history; the session row and its other fields survive."""
        session = await self.find_session(identity)
        if session is None:
            return
        session.messages = []
        await self._save(session)

    async def update_session_mode(
        self, identity: str, chat_address: Optional[str], mode: str
    ) -> None:
        session = await self.get_session(identity, chat_address)
        session.session_mode = str(mode)
        await self._save(session)

    async def set_selected_service(
        self, identity: str, service: Optional[str]
    ) -> None:
        """Start (or stop, with None) a service question flow; resets asked questions."""
        session = await self.get_session(identity)
        session.selected_service = service
        session.questions_asked = []
        await self._save(session)

    async def get_selected_service(self, identity: str) -> Optional[str]:
        return (await self.get_session(identity)).selected_service

    async def mark_question_asked(self, identity: str, index: int) -> None:
        session = await self.get_session(identity)
        if index not in session.questions_asked:
            session.questions_asked.append(index)
            await self._save(session)

    async def get_next_question_index(self, identity: str) -> Optional[int]:
        """Lowest question index not asked yet, or None when no service is selected."""
        session = await self.get_session(identity)
        if session.selected_service is None:
            return None
        asked = set(session.questions_asked)
        index = 0
        while index in asked:
            index += 1
        return index

    async def set_user_data(self, identity: str, key: str, value: Any) -> None:
        session = await self.get_session(identity)
        session.user_data[key] = value
        await self._save(session)

    async def get_user_data(self, identity: str, key: str, default: Any = None) -> Any:
        return (await self.get_session(identity)).user_data.get(key, default)

    async def expire_idle_sessions(
        self,
        mode_manager: "ModeManager",
        transport: Optional["ChannelPlugin"] = None,
        conversation_log: Optional["ConversationLogService"] = None,
        now: Optional[datetime] = None,
    ) -> List[str]:
        """
        Clear AI-owned sessions idle longer than the timeout.

        Sessions owned by a human or support operator are never touched. Each
        cleared session gets one end-of-session notice. Returns the identities
        that were cleared.
        """
        now = now or utcnow()
        cleared: List[str] = []
        for identity in list(self._sessions):
            session = self._sessions.get(identity)
            if session is None or not session.messages:
                continue
            if await mode_manager.get_mode(identity) != ConversationMode.AI:
                continue
            if now - session.last_activity <= self._session_timeout:
                continue
            # Re-check after the mode read: a message may have arrived meanwhile.
            if not session.messages or now - session.last_activity <= self._session_timeout:
                continue

            session.messages = []
            cleared.append(identity)
            await self._save(session)

            if transport is not None and session.chat_address:
                result = await transport.send_text(
                    session.chat_address, BotMessages.SESSION_IDLE_ENDED
                )
                if not result.success:
                    logger.error(
                        "Error sending end-of-session notice to %s: %s",
                        identity,
                        result.error,
                    )
            if conversation_log is not None:
                await conversation_log.log(
                    LogRole.SYSTEM,
                    "Conversación reiniciada por inactividad",
                    identity=identity,
                )
            else:
                logger.info("Session for %s reset after inactivity", identity)
        return cleared

    async def purge_stale_sessions(
        self, max_age: timedelta, now: Optional[datetime] = None
    ) -> int:
        """Physically delete stored sessions whose last activity is older than max_age."""
        cutoff = (now or utcnow()) - max_age
        try:
            deleted = await self._store.delete(
                COLLECTION, {"last_activity": {"operator": "<", "value": cutoff}}
            )
        except PersistenceError as e:
            logger.error("Error purging stale sessions: %s", e)
            return 0
        for identity, session in list(self._sessions.items()):
            if session.last_activity < cutoff:
                self._sessions.pop(identity, None)
        if deleted:
            logger.info("Purged %d stale sessions", deleted)
        return deleted
