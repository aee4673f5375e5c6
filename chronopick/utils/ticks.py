"""
Deferred task queue.

A *tick* is work scheduled to run after the current synchronous event
handling has returned.  Tasks run FIFO and to completion; there is no
cancellation.  A task scheduled while the queue is draining runs in the same
drain, after every task that was already queued.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, Tuple

logger = logging.getLogger(__name__)

Task = Tuple[Callable[..., Any], Tuple[Any, ...]]


class DeferredTaskQueue:

    def __init__(self) -> None:
        self._tasks: Deque[Task] = deque()
        self._draining = False

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, fn: Callable[..., Any], *args: Any) -> None:
        self._tasks.append((fn, args))
        logger.debug("Scheduled %s (%d pending)", getattr(fn, "__name__", fn), len(self._tasks))

    def drain(self) -> int:
        """
        Run queued tasks until the queue is empty.

        Returns the number of tasks executed.  Re-entrant calls (a task
        draining the queue it runs on) are no-ops; the outer drain picks up
        whatever the task scheduled.
        """
        if self._draining:
            return 0
        self._draining = True
        ran = 0
        try:
            while self._tasks:
                fn, args = self._tasks.popleft()
                fn(*args)
                ran += 1
        finally:
            self._draining = False
        if ran:
            logger.debug("Drained %d deferred task(s)", ran)
        return ran
