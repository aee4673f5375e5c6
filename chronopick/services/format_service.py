"""
Format resolver.

Derives the single composite format string every other component uses from
the date format, the date/time divider and the 12h/24h flag.  Pure and
uncached: callers re-resolve whenever any input changes.
"""

from __future__ import annotations

from typing import Dict, Optional

from chronopick.errors import InvalidConfiguration
from chronopick.models.schemas import FormatSpec

TIME_FORMAT: Dict[str, str] = {
    "24": "HH:mm",
    "12": "hh:mm A",
    "AMPM": "hh:mm A",
    "ampm": "hh:mm a",
}


def time_format_string(time_format: str) -> str:
    try:
        return TIME_FORMAT[str(time_format)]
    except KeyError as exc:
        raise InvalidConfiguration(
            f"Unknown timeFormat {time_format!r}; expected one of {sorted(TIME_FORMAT)}."
        ) from exc


def resolve_format(
    date_format: str,
    divider: str = " ",
    time_format: str = "24",
    date_time_format: Optional[str] = None,
) -> str:
    """
    Return the effective date-time format.

    ``date_time_format`` wins outright when given; the caller is then
    responsible for composing the date and time tokens.

    >>> resolve_format("DD-MM-YYYY", " ", "24")
    'DD-MM-YYYY HH:mm'
    >>> resolve_format("DD-MM-YYYY", " ", "12", "YYYY/MM/DD HH:mm")
    'YYYY/MM/DD HH:mm'
    """
    if date_time_format:
        return date_time_format
    return f"{date_format}{divider}{time_format_string(time_format)}"


def resolve_format_spec(spec: FormatSpec) -> str:
    return resolve_format(spec.date_format, spec.divider, spec.time_format, spec.date_time_format)
