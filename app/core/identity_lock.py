"""IdentityLockManager - serialize handling of messages per conversation identity."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class IdentityLockManager:
    """One asyncio.Lock per identity; locks are dropped once nobody holds or waits on them."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def lock(self, identity: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(identity, asyncio.Lock())
        self._waiters[identity] = self._waiters.get(identity, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[identity] -= 1
            if self._waiters[identity] == 0:
                del self._waiters[identity]
                self._locks.pop(identity, None)

    def is_locked(self, identity: str) -> bool:
        lock = self._locks.get(identity)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
