"""
Constraint evaluator.

Normalises disabled / marked values into canonical sets, enforces min/max
bounds and derives the wholly-disabled months and years the coarser pickers
need.

Matching rules
--------------
* Bounds compare at the granularity of the active mode; an absent bound is
  unbounded on that side.
* A disabled entry matches a candidate when every field down to the active
  mode that *both* specify is equal (and they share at least one).  An entry
  carrying a time therefore disables its whole day in the day picker.
* A month is fully disabled when none of its days is both inside the bounds
  and not disabled; a year when all twelve of its months are.

Widening the bounds can only shrink the derived sets; adding disabled
entries can only grow them.
"""

from __future__ import annotations

import calendar
from typing import Any, FrozenSet, Iterable, List, Optional, Set, Tuple

from chronopick.models.schemas import Bounds, CalendarMode, CanonicalDate, fields_for
from chronopick.services.parse_service import parse_value, parse_values

DisabledSet = FrozenSet[CanonicalDate]
MonthKey = Tuple[int, int]


def normalize(raw: Any, fmt: str, locale: Optional[str] = None) -> DisabledSet:
    """
    Parse a single value or a collection into a set of canonical dates.

    Unparseable entries are dropped.  Idempotent: normalising an already
    normalised set returns the same set.
    """
    return frozenset(parse_values(raw, fmt, locale))


def validate_bounds(min_date: Optional[CanonicalDate], max_date: Optional[CanonicalDate]) -> Bounds:
    """Bounds over already parsed limits; raises :class:`InvalidConfiguration` when inverted."""
    return Bounds(min_date=min_date, max_date=max_date)


def make_bounds(
    min_raw: Any,
    max_raw: Any,
    fmt: str,
    locale: Optional[str] = None,
) -> Bounds:
    """Parse both bounds; raises :class:`InvalidConfiguration` when inverted."""
    return validate_bounds(parse_value(min_raw, fmt, locale), parse_value(max_raw, fmt, locale))


# ── Candidate checks ─────────────────────────────────────────────────────────

def is_in_bounds(
    candidate: CanonicalDate,
    bounds: Optional[Bounds],
    mode: CalendarMode = CalendarMode.DAY,
) -> bool:
    if bounds is None:
        return True
    cell = candidate.truncate(mode)
    if bounds.min_date is not None and cell < bounds.min_date.truncate(mode):
        return False
    if bounds.max_date is not None and cell > bounds.max_date.truncate(mode):
        return False
    return True


def _matches_at(entry: CanonicalDate, candidate: CanonicalDate, mode: CalendarMode) -> bool:
    shared = False
    for name in fields_for(mode):
        mine, theirs = getattr(entry, name), getattr(candidate, name)
        if mine is None or theirs is None:
            continue
        if mine != theirs:
            return False
        shared = True
    return shared


def is_disabled(
    candidate: CanonicalDate,
    disabled: Iterable[CanonicalDate],
    mode: CalendarMode = CalendarMode.DAY,
) -> bool:
    return any(_matches_at(entry, candidate, mode) for entry in disabled)


# ── Derived sets for coarser pickers ─────────────────────────────────────────

class _DayIndex:
    """Disabled entries split into exact day keys and partial entries."""

    def __init__(self, disabled: Iterable[CanonicalDate]) -> None:
        self.days: Set[Tuple[int, int, int]] = set()
        self.partial: List[CanonicalDate] = []
        for entry in disabled:
            if None not in (entry.year, entry.month, entry.day):
                self.days.add((entry.year, entry.month, entry.day))
            else:
                self.partial.append(entry)

    def blocks(self, day: CanonicalDate) -> bool:
        if (day.year, day.month, day.day) in self.days:
            return True
        return is_disabled(day, self.partial, CalendarMode.DAY)


def _month_fully_disabled(year: int, month: int, index: _DayIndex, bounds: Optional[Bounds]) -> bool:
    if not 1 <= year <= 9999 or not 0 <= month <= 11:
        return False
    for day in range(1, calendar.monthrange(year, month + 1)[1] + 1):
        candidate = CanonicalDate(year, month, day)
        if is_in_bounds(candidate, bounds, CalendarMode.DAY) and not index.blocks(candidate):
            return False
    return True


def months_fully_disabled(
    disabled: Iterable[CanonicalDate],
    bounds: Optional[Bounds] = None,
    years: Iterable[int] = (),
) -> FrozenSet[MonthKey]:
    """
    ``(year, month)`` pairs with no selectable day.

    Months touched by a disabled entry are always examined; *years* adds every
    month of the listed years (e.g. the year shown by the month picker).
    """
    disabled = list(disabled)
    candidates: Set[MonthKey] = {
        (entry.year, entry.month)
        for entry in disabled
        if entry.year is not None and entry.month is not None
    }
    candidates.update((year, month) for year in years for month in range(12))
    index = _DayIndex(disabled)
    return frozenset(
        key for key in candidates if _month_fully_disabled(key[0], key[1], index, bounds)
    )


def years_fully_disabled(
    disabled: Iterable[CanonicalDate],
    bounds: Optional[Bounds] = None,
    years: Iterable[int] = (),
) -> FrozenSet[int]:
    """Years whose twelve months are all fully disabled."""
    disabled = list(disabled)
    candidates = {entry.year for entry in disabled if entry.year is not None}
    candidates.update(years)
    index = _DayIndex(disabled)
    return frozenset(
        year
        for year in candidates
        if all(_month_fully_disabled(year, month, index, bounds) for month in range(12))
    )


def is_selectable(
    candidate: CanonicalDate,
    bounds: Optional[Bounds],
    disabled: Iterable[CanonicalDate],
    mode: CalendarMode = CalendarMode.DAY,
) -> bool:
    """
    ``minDate <= candidate <= maxDate`` and not disabled at *mode*.

    Year and month candidates are refused only when every day beneath them
    is unavailable.
    """
    if candidate is None or candidate.is_empty():
        return False
    if not is_in_bounds(candidate, bounds, mode):
        return False
    if mode is CalendarMode.YEAR:
        if candidate.year is None:
            return True
        return candidate.year not in years_fully_disabled(disabled, bounds, (candidate.year,))
    if mode is CalendarMode.MONTH:
        if candidate.year is None or candidate.month is None:
            return not is_disabled(candidate, disabled, mode)
        index = _DayIndex(disabled)
        return not _month_fully_disabled(candidate.year, candidate.month, index, bounds)
    return not is_disabled(candidate, disabled, mode)


def disabled_for_mode(
    mode: CalendarMode,
    disabled: DisabledSet,
    bounds: Optional[Bounds] = None,
    years: Iterable[int] = (),
) -> FrozenSet[Any]:
    """The disable set in the shape the picker for *mode* expects."""
    if mode is CalendarMode.YEAR:
        return years_fully_disabled(disabled, bounds, years)
    if mode is CalendarMode.MONTH:
        return months_fully_disabled(disabled, bounds, years)
    return disabled
