"""Telegram channel plugin using python-telegram-bot (v22)."""

from __future__ import annotations

import asyncio
import contextlib
from datetime import datetime, timezone
from typing import Any, Optional

from telegram import Bot, Update
from telegram.error import TelegramError
from telegram.ext import Application, ApplicationBuilder, ContextTypes, MessageHandler, filters

from app.channels.base import ChannelCapabilities, ChannelMeta, InboundHandler
from app.channels.envelope import InboundMessage, OutboundSendResult
from app.infra.logging_config import get_logger
from .config import TelegramConfig

logger = get_logger("telegram")

PRIVATE_CHAT = "private"
SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


class TelegramPlugin:
    id = "telegram"
    meta = ChannelMeta(label="Telegram", docs="/channels/telegram")
    capabilities = ChannelCapabilities(
        chat_types=["direct"],
        supports_webhook=True,
        supports_polling=True,
        supports_media=False,
    )

    def __init__(self, cfg: TelegramConfig, bot: Optional[Bot] = None) -> None:
        self.cfg = cfg
        self._app: Optional[Application] = None
        self._bot = bot
        self._bot_id: Optional[int] = None
        self._on_message: Optional[InboundHandler] = None
        self._polling_task: Optional[asyncio.Task[None]] = None

    @property
    def bot(self) -> Bot:
        if self._app is not None:
            return self._app.bot
        if self._bot is None:
            self._bot = Bot(token=self.cfg.bot_token)
        return self._bot

    def build_application(self) -> Application:
        """Application that handles updates from different chats concurrently."""
        app = (
            ApplicationBuilder()
            .token(self.cfg.bot_token)
            .concurrent_updates(True)
            .build()
        )
        app.add_handler(MessageHandler(filters.ALL, self._on_update))
        return app

    async def start(self, on_message: InboundHandler) -> None:
        self._on_message = on_message
        self._app = self.build_application()
        await self._app.initialize()
        self._bot_id = self._app.bot.id
        logger.info("Telegram plugin started in %s mode", self.cfg.mode)

        if self.cfg.mode == "polling":
            self._polling_task = asyncio.create_task(self._run_polling())

    async def stop(self) -> None:
        if self._app is None:
            return
        if self._polling_task is not None:
            try:
                await self._app.updater.stop()
                await self._app.stop()
            except RuntimeError:
                pass
            self._polling_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._polling_task
        await self._app.shutdown()
        self._app = None

    async def _run_polling(self) -> None:
        assert self._app is not None
        await self._app.start()
        await self._app.updater.start_polling()

    def to_inbound(self, update: Update) -> Optional[InboundMessage]:
        """Normalize an update; None when it carries no message."""
        msg = update.effective_message
        if msg is None:
            return None
        sender = msg.from_user
        from_self = bool(
            sender
            and sender.is_bot
            and (self._bot_id is None or sender.id == self._bot_id)
        )
        ts = msg.date or datetime.now(timezone.utc)
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return InboundMessage(
            channel=self.id,
            address=str(msg.chat_id),
            text=msg.text or msg.caption or "",
            display_name=(sender.full_name or sender.username) if sender else None,
            from_self=from_self,
            is_group=msg.chat.type != PRIVATE_CHAT,
            message_id=str(msg.message_id),
            timestamp=ts,
            raw=update.to_dict(),
        )

    async def _on_update(
        self, update: Update, _context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        inbound = self.to_inbound(update)
        if inbound is None or self._on_message is None:
            return
        await self._on_message(inbound)

    async def send_text(self, chat_address: str, text: str) -> OutboundSendResult:
        if not text:
            return OutboundSendResult(success=False, error="empty text")
        try:
            sent = await self.bot.send_message(chat_id=int(chat_address), text=text)
        except (TelegramError, ValueError) as e:
            logger.error("Telegram send to %s failed: %s", chat_address, e)
            return OutboundSendResult(success=False, error=str(e))
        return OutboundSendResult(
            success=True,
            platform_message_id=str(sent.message_id) if sent else None,
        )

    def address_for(self, identity: str) -> str:
        # Private chat ids equal the user id, which is the identity.
        return identity

    def verify_webhook(self, request_headers: Optional[dict[str, str]] = None) -> bool:
        """Validate X-Telegram-Bot-Api-Secret-Token if a webhook secret is configured."""
        expected = self.cfg.webhook_secret
        if not expected:
            return True
        header_lower = SECRET_HEADER.lower()
        for key, value in (request_headers or {}).items():
            if key.lower() == header_lower:
                return value == expected
        return False

    async def process_webhook_update(self, payload: dict[str, Any]) -> None:
        if self._app is None:
            raise RuntimeError("Telegram plugin not started")
        update = Update.de_json(payload, self._app.bot)
        if update is None:
            raise ValueError("Invalid Telegram update")
        await self._app.process_update(update)
