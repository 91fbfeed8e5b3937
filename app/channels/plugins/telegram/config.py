from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class TelegramConfig:
    bot_token: str
    mode: str = "polling"  # polling | webhook
    webhook_path: str = "/webhooks/telegram"
    webhook_secret: Optional[str] = None
