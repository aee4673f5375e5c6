"""
Serializer.

Formats canonical dates back into the caller's textual representation and
builds the payload of the output-change notification.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from chronopick.models.schemas import CanonicalDate, InputConfig
from chronopick.services.parse_service import parse_value
from chronopick.utils.time_utils import format_value


def serialize(
    value: Any,
    fmt: str,
    locale: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    """
    Text for *value* under *fmt*; ``""`` when absent or invalid.

    Round-trips with :func:`~chronopick.services.parse_service.parse_value`
    for values fully specified at the granularity of *fmt*.
    """
    if not isinstance(value, CanonicalDate):
        value = parse_value(value, fmt, locale)
    return format_value(value, fmt, locale, today)


def display_value(value: Any, fmt: str, locale: Optional[str] = None) -> str:
    """Text shown in the input field: caller strings are echoed unchanged."""
    if isinstance(value, str):
        return value
    return serialize(value, fmt, locale)


def change_payload(config: InputConfig, value: str) -> Dict[str, Any]:
    """The caller's full props with ``value`` replaced."""
    return {**config.as_props(), "value": value}
