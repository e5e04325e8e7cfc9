"""Scheduling — the single cooperative execution context.

A scheduler is any callable taking a zero-argument function and running it
at the next scheduling opportunity, on the one execution context that owns
all containers. Asynchronous settlements are marshalled through it before
they touch a status.

Thread safety: asyncio_scheduler() uses call_soon_threadsafe, so settlements
from worker threads land on the loop thread.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Callable

Scheduler = Callable[[Callable[[], None]], None]


class ManualScheduler:
    """Deterministic scheduler: queues callbacks until flush() is called.

    Usage:
        scheduler = ManualScheduler()
        scheduler(lambda: print("later"))
        scheduler.flush()  # prints "later"
    """

    __slots__ = ("_queue",)

    def __init__(self) -> None:
        self._queue: deque[Callable[[], None]] = deque()

    def __call__(self, fn: Callable[[], None]) -> None:
        self._queue.append(fn)

    @property
    def pending(self) -> int:
        """Number of callbacks waiting to run. Useful for testing."""
        return len(self._queue)

    def flush(self) -> None:
        """Run queued callbacks, including ones queued while flushing."""
        while self._queue:
            self._queue.popleft()()


def asyncio_scheduler(loop: asyncio.AbstractEventLoop | None = None) -> Scheduler:
    """Scheduler bound to an asyncio loop (the running one by default)."""
    if loop is None:
        loop = asyncio.get_running_loop()

    def _schedule(fn: Callable[[], None]) -> None:
        loop.call_soon_threadsafe(fn)

    return _schedule
