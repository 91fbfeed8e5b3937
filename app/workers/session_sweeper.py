"""Background maintenance: idle-session expiry and mode cache reconciliation."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Optional

from app.infra.logging_config import get_logger
from app.workers.periodic import PeriodicTask

if TYPE_CHECKING:
    from app.channels.base import ChannelPlugin
    from app.services.conversation_log_service import ConversationLogService
    from app.services.mode_manager import ModeManager
    from app.services.session_manager import SessionManager

logger = get_logger("sweeper")


class SessionSweeper(PeriodicTask):
    """Clears idle AI-owned sessions, then purges session rows past the retention age."""

    def __init__(
        self,
        session_manager: "SessionManager",
        mode_manager: "ModeManager",
        transport: Optional["ChannelPlugin"],
        conversation_log: Optional["ConversationLogService"],
        interval: float,
        retention: timedelta,
    ) -> None:
        super().__init__("session-sweeper", interval, self.sweep)
        self._sessions = session_manager
        self._modes = mode_manager
        self._transport = transport
        self._log = conversation_log
        self._retention = retention

    async def sweep(self) -> None:
        cleared = await self._sessions.expire_idle_sessions(
            self._modes, self._transport, self._log
        )
        purged = await self._sessions.purge_stale_sessions(self._retention)
        if cleared or purged:
            logger.info("Sweep cleared %d idle sessions, purged %d rows", len(cleared), purged)


class ModeSyncWorker(PeriodicTask):
    """Pulls stored modes into the cache on a fixed interval."""

    def __init__(self, mode_manager: "ModeManager", interval: float) -> None:
        super().__init__("mode-sync", interval, self.sync)
        self._modes = mode_manager

    async def sync(self) -> None:
        changed = await self._modes.reconcile()
        if changed:
            logger.info("Mode sync updated %d cached entries", changed)
