from __future__ import annotations

from datetime import timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.channels.base import ChannelPlugin
from app.channels.plugins.telegram.config import TelegramConfig
from app.channels.plugins.telegram.plugin import TelegramPlugin
from app.config import Settings, get_settings
from app.core.identity_lock import IdentityLockManager
from app.core.routing import ChatCompleter, ConversationRouter
from app.infra.logging_config import get_logger
from app.schemas.advisor import Advisor
from app.services.advisor_assignment_service import AdvisorAssignmentService
from app.services.conversation_analyzer import ConversationAnalyzer
from app.services.conversation_log_service import ConversationLogService
from app.services.conversation_report_service import ConversationReportService
from app.services.location_validator import LocationValidator
from app.services.mode_manager import ModeManager
from app.services.operator_service import OperatorService
from app.services.prompt_loader import PromptLoader
from app.services.sale_status_service import SaleStatusService
from app.services.session_manager import SessionManager
from app.store.durable_store import DurableStore
from app.workers.llm import LLMRunner, build_llm_runner_from_env
from app.workers.session_sweeper import ModeSyncWorker, SessionSweeper

logger = get_logger("app_state")


def build_transport(settings: Settings) -> Optional[ChannelPlugin]:
    if not settings.telegram_enabled or not settings.telegram_bot_token:
        return None
    return TelegramPlugin(
        TelegramConfig(
            bot_token=settings.telegram_bot_token,
            mode=settings.telegram_mode,
            webhook_secret=settings.telegram_webhook_secret,
        )
    )


class AppState:
    """Every long-lived service of the process, built once and shared through app.state."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session_factory: Optional[Callable[[], Session]] = None,
        transport: Optional[ChannelPlugin] = None,
        llm: Optional[ChatCompleter] = None,
        analyzer: Optional[ConversationAnalyzer] = None,
    ) -> None:
        self.settings = settings or get_settings()
        s = self.settings
        self.store = DurableStore(session_factory)
        self.mode_manager = ModeManager(self.store, prefer_cache=s.mode_sync_prefer_cache)
        self.session_manager = SessionManager(
            self.store,
            max_messages=s.max_context_messages,
            session_timeout=timedelta(seconds=s.session_timeout_seconds),
        )
        self.conversation_log = ConversationLogService(self.store)
        self.advisors = AdvisorAssignmentService(
            self.store, [Advisor(name=a.name, phone=a.phone) for a in s.advisors]
        )
        self.sales = SaleStatusService(self.store)
        self.reports = ConversationReportService(
            self.conversation_log, self.sales, self.mode_manager
        )
        self.prompt_loader = PromptLoader(s.prompt_file)
        self.location_validator = LocationValidator()
        self.identity_locks = IdentityLockManager()
        self.transport = transport if transport is not None else build_transport(s)
        self._llm = llm
        self._analyzer = analyzer

        self.operator = OperatorService(
            self.mode_manager, self.session_manager, self.conversation_log, self.transport
        )
        self.sweeper = SessionSweeper(
            self.session_manager,
            self.mode_manager,
            self.transport,
            self.conversation_log,
            interval=s.session_check_interval_seconds,
            retention=timedelta(days=s.session_retention_days),
        )
        self.mode_sync = ModeSyncWorker(self.mode_manager, interval=s.mode_sync_interval_seconds)
        self.router: Optional[ConversationRouter] = None

    @property
    def llm(self) -> ChatCompleter:
        if self._llm is None:
            self._llm = build_llm_runner_from_env()
        return self._llm

    @property
    def analyzer(self) -> ConversationAnalyzer:
        """Conversation analyzer on the responder's model, or on a model from the environment."""
        if self._analyzer is None:
            runner = self.llm if isinstance(self.llm, LLMRunner) else build_llm_runner_from_env()
            self._analyzer = ConversationAnalyzer(
                self.conversation_log, self.sales, runner.model
            )
        return self._analyzer

    def build_router(self) -> Optional[ConversationRouter]:
        if self.transport is None:
            logger.warning("No messaging transport configured; inbound routing disabled")
            return None
        self.router = ConversationRouter(
            session_manager=self.session_manager,
            mode_manager=self.mode_manager,
            conversation_log=self.conversation_log,
            transport=self.transport,
            llm=self.llm,
            prompt_loader=self.prompt_loader,
            location_validator=self.location_validator,
            handoff_marker=self.settings.handoff_marker,
            identity_locks=self.identity_locks,
        )
        return self.router

    async def start(self, run_background: bool = True) -> None:
        """Warm caches, connect the transport and start the timers."""
        await self.mode_manager.load()
        await self.advisors.load()
        router = self.router or self.build_router()
        if router is not None and self.transport is not None:
            await self.transport.start(router.handle_inbound)
        if run_background:
            self.sweeper.start()
            self.mode_sync.start()
        logger.info("Application services started")

    async def stop(self) -> None:
        await self.sweeper.stop()
        await self.mode_sync.stop()
        if self.transport is not None and self.router is not None:
            await self.transport.stop()
        await self.mode_manager.flush()
        await self.conversation_log.drain()
        logger.info("Application services stopped")
