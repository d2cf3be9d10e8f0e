"""Cancellable periodic background task (drives pending-record sync)."""

from __future__ import annotations
from typing import Awaitable, Callable, Optional
import asyncio
import logging

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs job every interval_seconds on the event loop until stopped.

    A failing run is logged and the loop continues; stop() cancels the
    sleep or the in-progress run and waits for the task to finish.
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[object]],
        interval_seconds: float = 30.0,
        name: str = "periodic-task"
    ):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._job = job
        self._interval = interval_seconds
        self._name = name
        self._task: Optional[asyncio.Task] = None
        self.runs = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.ensure_future(self._loop())
        logger.info("%s started (every %ss)", self._name, self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("%s stopped", self._name)

    async def run_once(self) -> None:
        try:
            await self._job()
            self.runs += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.failures += 1
            logger.warning("%s run failed: %s", self._name, e)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.run_once()
