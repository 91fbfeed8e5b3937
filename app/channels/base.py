from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol

from .envelope import InboundMessage, OutboundSendResult

InboundHandler = Callable[[InboundMessage], Awaitable[Optional[str]]]


@dataclass(frozen=True)
class ChannelMeta:
    label: str
    docs: Optional[str] = None


@dataclass(frozen=True)
class ChannelCapabilities:
    chat_types: list[str]
    supports_webhook: bool = False
    supports_polling: bool = False
    supports_media: bool = False


class ChannelPlugin(Protocol):
    """Messaging transport as seen by the core."""

    id: str
    meta: ChannelMeta
    capabilities: ChannelCapabilities

    async def start(self, on_message: InboundHandler) -> None: ...
    async def stop(self) -> None: ...

    async def send_text(self, chat_address: str, text: str) -> OutboundSendResult: ...

    def address_for(self, identity: str) -> str: ...
