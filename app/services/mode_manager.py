"""ModeManager: who owns each conversation (ai, human or support).

Write-through cache in front of the ``mode_states`` collection. The cache is
authoritative inside the process: writes land in it before the first
suspension point and are persisted in the background; a failed write is
logged and corrected by the next successful sync. Periodic reconciliation
pulls rows from the store and only replaces cache entries that are not newer
than the row (cache wins on conflict).
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from app.constants.modes import ConversationMode
from app.exceptions import PersistenceError
from app.infra.logging_config import get_logger
from app.schemas.mode import ModeCacheEntry
from app.store.durable_store import DurableStore, Record
from app.utils.dates import as_utc, utcnow

logger = get_logger("mode_manager")

COLLECTION = "mode_states"


def _entry_from_record(record: Record) -> ModeCacheEntry:
    try:
        mode = ConversationMode.coerce(record.get("mode"))
    except ValueError:
        logger.warning(
            "Unknown mode %r stored for %s; treating as ai",
            record.get("mode"),
            record.get("identity"),
        )
        mode = ConversationMode.AI
    return ModeCacheEntry(
        mode=mode,
        activated_at=as_utc(record.get("activated_at")),
        activated_by=record.get("activated_by"),
        updated_at=as_utc(record.get("updated_at")),
    )


class ModeManager:
    def __init__(self, store: DurableStore, prefer_cache: bool = True) -> None:
        self._store = store
        self._prefer_cache = prefer_cache
        self._cache: Dict[str, ModeCacheEntry] = {}
        self._pending: Set[asyncio.Task] = set()

    async def load(self) -> int:
        """Warm the cache with every stored row. Returns the number of rows loaded."""
        try:
            rows = await self._store.find_all(COLLECTION)
        except PersistenceError as e:
            logger.error("Could not load conversation modes: %s", e)
            return 0
        for row in rows:
            self._cache[row["identity"]] = _entry_from_record(row)
        logger.info("Loaded %d conversation mode states", len(rows))
        return len(rows)

    async def get_mode(self, identity: str) -> ConversationMode:
        cached = self._cache.get(identity)
        if cached is not None:
            return cached.mode
        try:
            row = await self._store.find_one(COLLECTION, {"identity": identity})
        except PersistenceError as e:
            logger.error("Error reading mode for %s: %s", identity, e)
            cached = self._cache.get(identity)
            return cached.mode if cached else ConversationMode.AI
        # A set_mode may have landed while the read was suspended.
        if identity in self._cache:
            return self._cache[identity].mode
        entry = _entry_from_record(row) if row else ModeCacheEntry()
        self._cache[identity] = entry
        return entry.mode

    async def is_human_mode(self, identity: str) -> bool:
        return await self.get_mode(identity) == ConversationMode.HUMAN

    async def is_support_mode(self, identity: str) -> bool:
        return await self.get_mode(identity) == ConversationMode.SUPPORT

    async def set_mode(
        self,
        identity: str,
        mode: ConversationMode | str,
        activated_by: Optional[str] = "system",
    ) -> ModeCacheEntry:
        """
        Change the owner of a conversation.

        The cache is updated synchronously, so a following get_mode sees the
        new value even while the durable write is still pending.
        """
        mode = ConversationMode.coerce(mode)
        now = utcnow()
        operator_owned = mode.is_operator_owned
        entry = ModeCacheEntry(
            mode=mode,
            activated_at=now if operator_owned else None,
            activated_by=(activated_by or "system") if operator_owned else None,
            updated_at=now,
        )
        self._cache[identity] = entry
        task = asyncio.create_task(self._persist(identity, entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return entry

    async def _persist(self, identity: str, entry: ModeCacheEntry) -> None:
        fields: Dict[str, Any] = {
            "mode": entry.mode.value,
            "activated_at": entry.activated_at,
            "activated_by": entry.activated_by,
            "updated_at": entry.updated_at,
        }
        try:
            updated = await self._store.update(
                COLLECTION, fields, {"identity": identity}
            )
            if not updated:
                await self._store.insert(COLLECTION, {"identity": identity, **fields})
        except PersistenceError as e:
            logger.error("Error persisting mode %s for %s: %s", entry.mode, identity, e)
            return
        logger.info("Mode %s set for %s", entry.mode.value.upper(), identity)

    async def flush(self) -> None:
        """Wait for every background write scheduled so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def remove(self, identity: str) -> None:
        self._cache.pop(identity, None)
        try:
            await self._store.delete(COLLECTION, {"identity": identity})
        except PersistenceError as e:
            logger.error("Error removing mode state for %s: %s", identity, e)
            return
        logger.info("Removed mode state for %s", identity)

    async def list_modes(self) -> Dict[str, ConversationMode]:
        """Every known identity and its mode; cache values override stored rows."""
        result: Dict[str, ConversationMode] = {}
        try:
            rows = await self._store.find_all(COLLECTION)
        except PersistenceError as e:
            logger.error("Error listing modes, falling back to cache: %s", e)
            rows = []
        for row in rows:
            result[row["identity"]] = _entry_from_record(row).mode
        for identity, entry in self._cache.items():
            result[identity] = entry.mode
        return result

    async def contacts_in_mode(self, mode: ConversationMode | str) -> List[str]:
        mode = ConversationMode.coerce(mode)
        modes = await self.list_modes()
        return sorted(identity for identity, m in modes.items() if m == mode)

    def cached_entry(self, identity: str) -> Optional[ModeCacheEntry]:
        return self._cache.get(identity)

    async def reconcile(self) -> int:
        """
        Pull every stored row into the cache.

        With prefer_cache, a cached entry is replaced only when the row is at
        least as new; otherwise rows always win. Returns entries changed.
        """
        try:
            rows = await self._store.find_all(COLLECTION)
        except PersistenceError as e:
            logger.error("Error syncing mode cache with store: %s", e)
            return 0
        changed = 0
        for row in rows:
            identity = row["identity"]
            incoming = _entry_from_record(row)
            current = self._cache.get(identity)
            if current is not None and self._prefer_cache and _is_newer(
                current.updated_at, incoming.updated_at
            ):
                continue
            if current != incoming:
                changed += 1
            self._cache[identity] = incoming
        return changed


def _is_newer(cached: Optional[datetime], stored: Optional[datetime]) -> bool:
    if cached is None:
        return False
    if stored is None:
        return True
    return as_utc(cached) > as_utc(stored)
