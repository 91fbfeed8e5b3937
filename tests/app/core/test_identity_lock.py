import asyncio

import pytest

from app.core.identity_lock import IdentityLockManager


@pytest.mark.asyncio
async def test_same_identity_is_serialized():
    locks = IdentityLockManager()
    order = []

    async def handle(tag, delay):
        async with locks.lock("a"):
            order.append(f"{tag}-start")
            await asyncio.sleep(delay)
            order.append(f"{tag}-end")

    await asyncio.gather(handle("first", 0.02), handle("second", 0))
    assert order == ["first-start", "first-end", "second-start", "second-end"]


@pytest.mark.asyncio
async def test_different_identities_run_concurrently():
    locks = IdentityLockManager()
    entered = asyncio.Event()

    async def holder():
        async with locks.lock("a"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def other():
        async with locks.lock("b"):
            entered.set()

    await asyncio.gather(holder(), other())


@pytest.mark.asyncio
async def test_locks_are_released_after_use():
    locks = IdentityLockManager()
    async with locks.lock("a"):
        assert locks.is_locked("a")
        assert len(locks) == 1
    assert not locks.is_locked("a")
    assert len(locks) == 0
