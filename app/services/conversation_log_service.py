"""Conversation audit log: append-only writes with a retry queue, plus report reads."""

from __future__ import annotations

from collections import deque
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Deque, Dict, List, Optional, Tuple

from app.constants.modes import LogRole
from app.exceptions import PersistenceError
from app.infra.logging_config import get_logger
from app.schemas.conversation_log import (
    ConversationLogEntry,
    ConversationLogRead,
    ConversationStats,
)
from app.store.durable_store import DurableStore, Record
from app.utils.dates import as_utc, utcnow

logger = get_logger("conversation")

COLLECTION = "conversation_logs"

_TYPE_BY_ROLE = {
    LogRole.CLIENT.value: "USER",
    LogRole.BOT.value: "BOT",
    LogRole.SUPPORT.value: "HUMAN",
    "HUMAN": "HUMAN",
}

_STATS_SQL = """
    SELECT
        COUNT(*) AS total_messages,
        COUNT(DISTINCT identity) AS unique_users,
        SUM(CASE WHEN role = :support_role THEN 1 ELSE 0 END) AS human_responses,
        SUM(CASE WHEN role = :bot_role THEN 1 ELSE 0 END) AS ai_responses
    FROM conversation_logs
"""


def log_type(role: Optional[str]) -> str:
    """Display type for a role: USER, BOT, HUMAN or the upper-cased role."""
    if not role:
        return "BOT"
    return _TYPE_BY_ROLE.get(role, role.upper())


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def _to_read(record: Record) -> ConversationLogRead:
    return ConversationLogRead(
        **{**record, "timestamp": as_utc(record["timestamp"])},
        type=log_type(record.get("role")),
    )


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


class ConversationLogService:
    """
    Writes every conversation event to the process log and, when it belongs to
    an identity, to the ``conversation_logs`` collection.

    Failed writes are queued in memory and drained by a single retry loop; an
    entry that fails again goes back to the head of the queue.
    """

    def __init__(self, store: DurableStore) -> None:
        self._store = store
        self._queue: Deque[ConversationLogEntry] = deque()
        self._draining = False

    @property
    def pending(self) -> int:
        return len(self._queue)

    async def log(
        self,
        role: LogRole | str,
        message: str,
        identity: Optional[str] = None,
        display_name: Optional[str] = None,
        response: Optional[str] = None,
        responder_id: Optional[str] = None,
    ) -> None:
        entry = ConversationLogEntry(
            timestamp=utcnow(),
            role=str(role),
            message=message,
            identity=identity,
            display_name=display_name,
            response=response,
            responder_id=responder_id,
        )
        self._echo(entry)
        if not entry.identity:
            return
        try:
            await self._write(entry)
        except PersistenceError as e:
            logger.error("Error saving conversation log: %s", e)
            self._queue.append(entry)
        if self._queue:
            await self.drain()

    async def drain(self) -> int:
        """Retry queued entries in order. Returns how many were written."""
        if self._draining:
            return 0
        self._draining = True
        written = 0
        try:
            while self._queue:
                entry = self._queue.popleft()
                try:
                    await self._write(entry)
                except PersistenceError as e:
                    logger.error("Error draining conversation log queue: %s", e)
                    self._queue.appendleft(entry)
                    break
                written += 1
        finally:
            self._draining = False
        return written

    async def _write(self, entry: ConversationLogEntry) -> None:
        await self._store.insert(COLLECTION, entry.model_dump())

    @staticmethod
    def _echo(entry: ConversationLogEntry) -> None:
        user_info = f" (Usuario: {entry.identity})" if entry.identity else ""
        line = "%s %s%s"
        if entry.role == LogRole.ERROR:
            logger.error(line, entry.role, entry.message, user_info)
        else:
            logger.info(line, entry.role, entry.message, user_info)

    async def get_logs(
        self, day: Optional[date] = None, limit: int = 1000, offset: int = 0
    ) -> List[ConversationLogRead]:
        """Entries newest first, optionally restricted to one UTC day."""
        predicate = self._day_predicate(day)
        try:
            rows = await self._store.find_all(
                COLLECTION, predicate, order_by="-timestamp", limit=limit, offset=offset
            )
        except PersistenceError as e:
            logger.error("Error reading conversation logs: %s", e)
            return []
        return [_to_read(row) for row in rows]

    async def get_conversation(
        self, identity: str, day: Optional[date] = None
    ) -> List[ConversationLogRead]:
        """One identity's entries, oldest first."""
        predicate: Dict[str, Any] = {"identity": identity, **self._day_predicate(day)}
        try:
            rows = await self._store.find_all(COLLECTION, predicate, order_by="timestamp")
        except PersistenceError as e:
            logger.error("Error reading conversation for %s: %s", identity, e)
            return []
        return [_to_read(row) for row in rows]

    async def get_entries(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 10000,
    ) -> List[ConversationLogRead]:
        """Entries in ``[start, end)`` across all identities, oldest first."""
        predicate: Dict[str, Any] = {}
        if start is not None and end is not None:
            predicate["timestamp"] = {"operator": "range", "value": (start, end)}
        elif start is not None:
            predicate["timestamp"] = {"operator": ">=", "value": start}
        elif end is not None:
            predicate["timestamp"] = {"operator": "<", "value": end}
        try:
            rows = await self._store.find_all(
                COLLECTION, predicate, order_by="timestamp", limit=limit
            )
        except PersistenceError as e:
            logger.error("Error reading conversation logs: %s", e)
            return []
        return [_to_read(row) for row in rows]

    async def get_available_dates(self) -> List[date]:
        """Distinct UTC days that have entries, newest first."""
        try:
            rows = await self._store.query(
                "SELECT timestamp FROM conversation_logs ORDER BY timestamp DESC"
            )
        except PersistenceError as e:
            logger.error("Error reading log dates: %s", e)
            return []
        seen: List[date] = []
        for row in rows:
            value = _as_date(row["timestamp"])
            if value is not None and value not in seen:
                seen.append(value)
        return seen

    async def get_stats(self, day: Optional[date] = None) -> ConversationStats:
        sql = _STATS_SQL
        params: Dict[str, Any] = {
            "support_role": LogRole.SUPPORT.value,
            "bot_role": LogRole.BOT.value,
        }
        if day is not None:
            start, end = day_bounds(day)
            sql += " WHERE timestamp >= :start AND timestamp < :end"
            params.update(start=start, end=end)
        try:
            rows = await self._store.query(sql, params)
        except PersistenceError as e:
            logger.error("Error computing conversation stats: %s", e)
            return ConversationStats()
        if not rows:
            return ConversationStats()
        return ConversationStats(**{k: v or 0 for k, v in rows[0].items()})

    @staticmethod
    def _day_predicate(day: Optional[date]) -> Dict[str, Any]:
        if day is None:
            return {}
        start, end = day_bounds(day)
        return {"timestamp": {"operator": "range", "value": (start, end)}}
