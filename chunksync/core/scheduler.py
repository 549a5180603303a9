# chunksync/core/scheduler.py
"""
Debounced task scheduling on the running asyncio loop.

A DebouncedTask wraps one coroutine function. Each ``schedule()`` call
cancels the pending run and starts a fresh delay, so a burst of calls
results in exactly one run after activity pauses.

Usage:
    flusher = DebouncedTask(store.flush_async, delay=0.5)
    flusher.schedule()   # after every mutation
    flusher.cancel()     # before a forced synchronous flush
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from chunksync.logging.logger import get_logger

logger = get_logger(__name__)


class DebouncedTask:
    """Explicit schedule/cancel/reschedule wrapper around an asyncio.Task."""

    def __init__(self, callback: Callable[[], Awaitable[None]], delay: float) -> None:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self._callback = callback
        self._delay = delay
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self) -> bool:
        """
        (Re)arm the timer.

        Returns False when no event loop is running; the caller is then
        responsible for running the callback itself (e.g. on close).
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return False

        self.cancel()
        self._task = loop.create_task(self._run())
        return True

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for a pending run to finish (no-op when nothing is scheduled)."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _run(self) -> None:
        await asyncio.sleep(self._delay)
        try:
            await self._callback()
        except Exception:
            # Nobody awaits a debounced run; the owner stays dirty and retries later.
            logger.exception("Debounced task failed")


__all__ = ["DebouncedTask"]
