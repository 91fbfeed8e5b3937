"""Webhook command handlers."""

from app.commands.webhooks.telegram_command import TelegramWebhookCommand

__all__ = ["TelegramWebhookCommand"]
