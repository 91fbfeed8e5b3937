"""
Webhook routes for inbound chat platform updates.

Platforms POST raw updates here; the active transport processes them and we
return 200.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from app.commands.webhooks.telegram_command import TelegramWebhookCommand
from app.core.app_state import AppState
from app.routers.utils.dependencies import get_app_state

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/telegram")
async def telegram_webhook(
    request: Request,
    state: AppState = Depends(get_app_state),
) -> dict[str, str]:
    """Receive Telegram webhook updates."""
    try:
        body = await request.json()
    except ValueError as e:
        logger.warning("Telegram webhook invalid JSON: %s", e)
        raise HTTPException(status_code=400, detail="Invalid JSON body") from e
    return await TelegramWebhookCommand(state).execute(request, body)
