"""
Calendar mode state machine.

The granularities form a cycle::

    year → month → day → hour → minute → year

*advance* moves forward after a value is confirmed, *retreat* moves backward
on header navigation.  Both are deferred by one tick on the session's
:class:`~chronopick.utils.ticks.DeferredTaskQueue`, and each computes the
next mode from the mode current *when it runs*, so two queued advances move
two steps.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from chronopick.errors import InvalidConfiguration
from chronopick.models.schemas import CalendarMode
from chronopick.utils.ticks import DeferredTaskQueue

logger = logging.getLogger(__name__)

START_MODES = (CalendarMode.YEAR, CalendarMode.MONTH, CalendarMode.DAY)


def check_start_mode(start_mode) -> CalendarMode:
    """Coerce *start_mode*; only the date modes can start a session."""
    start_mode = CalendarMode.coerce(start_mode)
    if start_mode not in START_MODES:
        raise InvalidConfiguration(
            f"startMode must be one of {[m.value for m in START_MODES]}, got {start_mode.value!r}."
        )
    return start_mode


def next_mode(mode: CalendarMode) -> CalendarMode:
    if mode is CalendarMode.YEAR:
        return CalendarMode.MONTH
    if mode is CalendarMode.MONTH:
        return CalendarMode.DAY
    if mode is CalendarMode.DAY:
        return CalendarMode.HOUR
    if mode is CalendarMode.HOUR:
        return CalendarMode.MINUTE
    if mode is CalendarMode.MINUTE:
        return CalendarMode.YEAR
    raise ValueError(f"Unknown calendar mode: {mode!r}")


def prev_mode(mode: CalendarMode) -> CalendarMode:
    if mode is CalendarMode.MINUTE:
        return CalendarMode.HOUR
    if mode is CalendarMode.HOUR:
        return CalendarMode.DAY
    if mode is CalendarMode.DAY:
        return CalendarMode.MONTH
    if mode is CalendarMode.MONTH:
        return CalendarMode.YEAR
    if mode is CalendarMode.YEAR:
        return CalendarMode.MINUTE
    raise ValueError(f"Unknown calendar mode: {mode!r}")


class ModeMachine:
    """
    Owns the active :class:`CalendarMode` of one selection session.

    ``preserve_view_mode`` keeps the last active mode across focus cycles;
    otherwise :meth:`on_focus` returns to ``start_mode``.
    """

    def __init__(
        self,
        start_mode: CalendarMode = CalendarMode.DAY,
        preserve_view_mode: bool = True,
        queue: Optional[DeferredTaskQueue] = None,
    ) -> None:
        self.start_mode = check_start_mode(start_mode)
        self.preserve_view_mode = preserve_view_mode
        self.queue = queue if queue is not None else DeferredTaskQueue()
        self._mode = self.start_mode
        self._listeners: List[Callable[[CalendarMode], None]] = []

    @property
    def mode(self) -> CalendarMode:
        return self._mode

    def on_switch(self, callback: Callable[[CalendarMode], None]) -> None:
        self._listeners.append(callback)

    def _switch(self, step: Callable[[CalendarMode], CalendarMode]) -> None:
        previous = self._mode
        self._mode = step(previous)
        logger.debug("Mode %s -> %s", previous.value, self._mode.value)
        for callback in self._listeners:
            callback(self._mode)

    def advance(self) -> None:
        """Schedule a move to the next finer granularity."""
        self.queue.schedule(self._switch, next_mode)

    def retreat(self) -> None:
        """Schedule a move to the next coarser granularity."""
        self.queue.schedule(self._switch, prev_mode)

    def on_focus(self) -> None:
        if not self.preserve_view_mode:
            self._mode = self.start_mode

    def reconfigure(self, start_mode: CalendarMode, preserve_view_mode: bool) -> None:
        self.start_mode = check_start_mode(start_mode)
        self.preserve_view_mode = preserve_view_mode
