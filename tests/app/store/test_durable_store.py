"""Tests for DurableStore."""

import asyncio
import time
from datetime import datetime, timedelta, timezone

import pytest

from app.exceptions import PersistenceError
from app.store.durable_store import DurableStore


@pytest.mark.asyncio
async def test_insert_and_find_one(store: DurableStore):
    """Inserted rows come back as plain dicts."""
    row_id = await store.insert("mode_states", {"identity": "5215555555555", "mode": "human"})
    assert row_id is not None

    record = await store.find_one("mode_states", {"identity": "5215555555555"})
    assert record["id"] == row_id
    assert record["mode"] == "human"
    assert record["activated_at"] is None


@pytest.mark.asyncio
async def test_find_one_missing_returns_none(store: DurableStore):
    assert await store.find_one("mode_states", {"identity": "nobody"}) is None


@pytest.mark.asyncio
async def test_update_returns_rows_touched(store: DurableStore):
    await store.insert("mode_states", {"identity": "a", "mode": "ai"})
    await store.insert("mode_states", {"identity": "b", "mode": "ai"})

    touched = await store.update("mode_states", {"mode": "support"}, {"identity": "a"})
    assert touched == 1
    assert (await store.find_one("mode_states", {"identity": "a"}))["mode"] == "support"
    assert (await store.find_one("mode_states", {"identity": "b"}))["mode"] == "ai"

    assert await store.update("mode_states", {"mode": "human"}, {"identity": "zzz"}) == 0


@pytest.mark.asyncio
async def test_delete(store: DurableStore):
    await store.insert("mode_states", {"identity": "a", "mode": "ai"})
    await store.insert("mode_states", {"identity": "b", "mode": "human"})

    assert await store.delete("mode_states", {"mode": "human"}) == 1
    remaining = await store.find_all("mode_states")
    assert [r["identity"] for r in remaining] == ["a"]


@pytest.mark.asyncio
async def test_find_all_with_in_and_operator_predicates(store: DurableStore):
    for identity, mode in (("a", "ai"), ("b", "human"), ("c", "support")):
        await store.insert("mode_states", {"identity": identity, "mode": mode})

    owned = await store.find_all(
        "mode_states", {"mode": ["human", "support"]}, order_by="identity"
    )
    assert [r["identity"] for r in owned] == ["b", "c"]

    not_ai = await store.find_all(
        "mode_states", {"mode": {"operator": "!=", "value": "ai"}}, order_by="-identity"
    )
    assert [r["identity"] for r in not_ai] == ["c", "b"]


@pytest.mark.asyncio
async def test_find_all_range_is_half_open(store: DurableStore):
    start = datetime(2026, 10, 19, tzinfo=timezone.utc)
    for hours in (-1, 0, 12, 24):
        await store.insert(
            "conversation_logs",
            {
                "identity": "a",
                "role": "cliente",
                "message": f"h{hours}",
                "timestamp": start + timedelta(hours=hours),
            },
        )

    rows = await store.find_all(
        "conversation_logs",
        {"timestamp": {"operator": "range", "value": (start, start + timedelta(days=1))}},
        order_by="timestamp",
    )
    assert [r["message"] for r in rows] == ["h0", "h12"]


@pytest.mark.asyncio
async def test_find_all_limit_and_offset(store: DurableStore):
    for i in range(5):
        await store.insert("mode_states", {"identity": f"id-{i}", "mode": "ai"})

    page = await store.find_all("mode_states", order_by="identity", limit=2, offset=1)
    assert [r["identity"] for r in page] == ["id-1", "id-2"]


@pytest.mark.asyncio
async def test_unknown_collection_raises(store: DurableStore):
    with pytest.raises(ValueError):
        await store.find_all("nope")


@pytest.mark.asyncio
async def test_unknown_column_raises(store: DurableStore):
    with pytest.raises(ValueError):
        await store.find_all("mode_states", {"colour": "blue"})


@pytest.mark.asyncio
async def test_duplicate_unique_key_raises_persistence_error(store: DurableStore):
    await store.insert("mode_states", {"identity": "a", "mode": "ai"})
    with pytest.raises(PersistenceError):
        await store.insert("mode_states", {"identity": "a", "mode": "human"})


@pytest.mark.asyncio
async def test_raw_query_with_datetime_params(store: DurableStore, setup_conversation_logs):
    _, identity_b, today, _ = setup_conversation_logs
    start = datetime(today.year, today.month, today.day, tzinfo=timezone.utc)

    rows = await store.query(
        "SELECT COUNT(*) AS total FROM conversation_logs "
        "WHERE timestamp >= :start AND timestamp < :end AND identity = :identity",
        {"start": start, "end": start + timedelta(days=1), "identity": identity_b},
    )
    assert rows == [{"total": 3}]


@pytest.mark.asyncio
async def test_raw_query_error_is_wrapped(store: DurableStore):
    with pytest.raises(PersistenceError):
        await store.query("SELECT * FROM missing_table")


@pytest.mark.asyncio
async def test_slow_store_call_does_not_block_event_loop(session_factory):
    """Other coroutines keep running while a store call waits on the database."""

    def slow_session():
        time.sleep(0.4)
        return session_factory()

    slow_store = DurableStore(session_factory=slow_session)
    gaps = []

    async def ticker():
        loop = asyncio.get_running_loop()
        last = loop.time()
        for _ in range(6):
            await asyncio.sleep(0.05)
            now = loop.time()
            gaps.append(now - last)
            last = now

    record, _ = await asyncio.gather(
        slow_store.find_one("mode_states", {"identity": "a"}), ticker()
    )

    assert record is None
    assert max(gaps) < 0.3
