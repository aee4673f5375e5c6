"""
Value builder.

Merges the explicit value, the fallback initial value and the in-progress
partial selection into the single date handed to the active picker, and
chooses the date a freshly opened picker centres on.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from chronopick.models.schemas import CanonicalDate, PartialSelection
from chronopick.services.parse_service import parse_value


def build_value(
    explicit: Any,
    initial: Any,
    partial: Optional[PartialSelection],
    locale: Optional[str],
    fmt: str,
) -> Optional[CanonicalDate]:
    """
    Resolve the picker's current value.

    1. *explicit* wins outright when it parses.
    2. Otherwise the present fields of *partial* are written over the parsed
       *initial* value, field by field.
    3. ``None`` when neither source yields a field.
    """
    parsed = parse_value(explicit, fmt, locale)
    if parsed is not None:
        return parsed

    base = parse_value(initial, fmt, locale)
    if partial is not None and not partial.is_empty():
        base = partial.merged_over(base)
    if base is None or base.is_empty():
        return None
    return base


def _accept(candidate: Optional[CanonicalDate], today: date) -> Optional[CanonicalDate]:
    if candidate is None or not candidate.is_valid():
        return None
    if candidate.to_datetime(today) is None:
        return None
    return candidate


def pick_initial_date(
    value: Any,
    initial_date: Any,
    fmt: str,
    locale: Optional[str] = None,
    min_date: Optional[CanonicalDate] = None,
    max_date: Optional[CanonicalDate] = None,
    today: Optional[date] = None,
) -> CanonicalDate:
    """
    Date a newly opened picker should centre on.

    Priority: *value* > *initial_date* > *today*; each candidate must parse
    to a valid calendar date.  The winner is clamped into
    ``[min_date, max_date]``.
    """
    today = today or date.today()
    chosen = (
        _accept(parse_value(value, fmt, locale), today)
        or _accept(parse_value(initial_date, fmt, locale), today)
        or CanonicalDate.from_datetime(today)
    )
    if min_date is not None and chosen < min_date:
        return min_date
    if max_date is not None and chosen > max_date:
        return max_date
    return chosen
