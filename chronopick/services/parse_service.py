"""
Value parser.

Converts caller input into canonical dates under a format and locale.

parse_value(raw, fmt, locale)
    Single-value context: the parsed value, the first parseable element of a
    list, or ``None``.

parse_values(raw, fmt, locale)
    Multi-value context (disabled / marked sets): every parseable element.

Neither function raises.  Input that does not match the format is a
*parse failure* and is replaced by the absent marker.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from chronopick.models.schemas import (
    CanonicalDate,
    EmptyValue,
    RawValue,
    SingleText,
    Structured,
    TextList,
    classify_raw,
)
from chronopick.utils.time_utils import parse_text

logger = logging.getLogger(__name__)


def _parse_item(raw: RawValue, fmt: str, locale: Optional[str]) -> Optional[CanonicalDate]:
    if isinstance(raw, EmptyValue):
        return None
    if isinstance(raw, SingleText):
        return parse_text(raw.text, fmt, locale)
    if isinstance(raw, Structured):
        return raw.value
    if isinstance(raw, TextList):
        for item in raw.items:
            parsed = _parse_item(classify_raw(item), fmt, locale)
            if parsed is not None:
                return parsed
        return None
    raise TypeError(f"Unhandled raw value variant: {type(raw).__name__}")


def parse_value(raw: Any, fmt: str, locale: Optional[str] = None) -> Optional[CanonicalDate]:
    """
    Parse *raw* into one :class:`CanonicalDate`, or ``None``.

    Structured input (mapping, ``datetime``, ``CanonicalDate``) is passed
    through field by field without reformatting.
    """
    return _parse_item(classify_raw(raw), fmt, locale)


def parse_values(raw: Any, fmt: str, locale: Optional[str] = None) -> List[CanonicalDate]:
    """Parse a value or list of values; unparseable elements are dropped."""
    variant = classify_raw(raw)
    if isinstance(variant, TextList):
        parsed = []
        for item in variant.items:
            value = _parse_item(classify_raw(item), fmt, locale)
            if value is None:
                logger.debug("Dropping unparseable entry %r", item)
                continue
            parsed.append(value)
        return parsed
    value = _parse_item(variant, fmt, locale)
    return [] if value is None else [value]
