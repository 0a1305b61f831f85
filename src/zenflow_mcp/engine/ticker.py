"""
Fixed-period asyncio ticker.

Drives the Pomodoro engine once per second inside the server's event
loop. The callback runs on the loop, so it never races with tool calls.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Ticker:
    """Call `callback` every `interval` seconds until stopped."""

    def __init__(self, interval: float, callback: Callable[[], Any]) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="zenflow-ticker")
        logger.debug("Ticker started (%.2fs)", self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Ticker stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self._callback()
            except Exception:
                # One bad tick must not end the loop; the next tick retries.
                logger.exception("Ticker callback failed")
