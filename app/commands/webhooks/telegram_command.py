"""
Command to handle Telegram webhook updates.

Validates the secret header, then hands the update to the running Telegram
plugin, which normalizes it and feeds it to the conversation router.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import HTTPException, Request

from app.channels.plugins.telegram.plugin import TelegramPlugin
from app.core.app_state import AppState


class TelegramWebhookCommand:
    """
    Command to handle Telegram webhook updates.
    Raises HTTPException 503 when Telegram is not the active transport, 403 on a
    bad secret and 400 on an update Telegram would not have sent.
    """

    def __init__(self, state: AppState) -> None:
        self.state = state
        self.logger = logging.getLogger(__name__)

    def get_telegram_plugin(self) -> Optional[TelegramPlugin]:
        transport = self.state.transport
        if isinstance(transport, TelegramPlugin) and self.state.router is not None:
            return transport
        return None

    async def execute(self, request: Request, body: Any) -> dict[str, str]:
        plugin = self.get_telegram_plugin()
        if plugin is None:
            raise HTTPException(
                status_code=503,
                detail="Telegram integration is not configured or disabled",
            )
        headers = dict(request.headers) if request.headers else {}
        if not plugin.verify_webhook(headers):
            raise HTTPException(status_code=403, detail="Invalid webhook secret")
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="Body must be a JSON object")
        try:
            await plugin.process_webhook_update(body)
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warning("Telegram webhook parse error: %s", e)
            raise HTTPException(status_code=400, detail="Invalid Telegram update") from e
        return {"status": "ok"}
