"""Fixed-interval background jobs on the event loop."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Callable, Optional

from app.infra.logging_config import get_logger

logger = get_logger("periodic")

Job = Callable[[], Awaitable[object]]


class PeriodicTask:
    """
    Runs ``job`` every ``interval`` seconds until stopped.

    A run never overlaps the previous one: ``run_once`` returns False without
    calling the job when a run is still in progress. Exceptions from the job are
    logged and the loop keeps going.
    """

    def __init__(self, name: str, interval: float, job: Job) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self._job = job
        self._running = False
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def started(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        if self._running:
            logger.warning("%s still running, skipping this tick", self.name)
            return False
        self._running = True
        try:
            await self._job()
        except Exception:
            logger.exception("%s failed", self.name)
        finally:
            self._running = False
        return True

    async def _loop(self) -> None:
        while not self._stop.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            if self._stop.is_set():
                break
            await self.run_once()

    def start(self) -> None:
        if self.started:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info("%s started (every %ss)", self.name, self.interval)

    async def stop(self) -> None:
        self._stop.set()
        if self._task is None:
            return
        task, self._task = self._task, None
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("%s stopped", self.name)
