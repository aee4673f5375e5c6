"""
Locale-aware calendar names.

Month names, weekday names and AM/PM markers come from the Babel CLDR data.
Locale identifiers may use ``-`` or ``_`` (``"pt-br"``, ``"pt_BR"``).  An
unknown locale falls back to :data:`DEFAULT_LOCALE`.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, Optional, Tuple

from babel import Locale, UnknownLocaleError
from babel.dates import get_day_names, get_month_names, get_period_names

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"


@lru_cache(maxsize=64)
def resolve_locale(identifier: Optional[str]) -> Locale:
    if not identifier:
        return Locale.parse(DEFAULT_LOCALE)
    try:
        return Locale.parse(identifier.replace("-", "_"))
    except (UnknownLocaleError, ValueError, TypeError):
        logger.warning("Unknown locale %r, falling back to %r", identifier, DEFAULT_LOCALE)
        return Locale.parse(DEFAULT_LOCALE)


@lru_cache(maxsize=64)
def month_names(identifier: Optional[str], width: str = "wide") -> Tuple[str, ...]:
    """Twelve month names, index 0 = January."""
    names = get_month_names(width, context="format", locale=resolve_locale(identifier))
    return tuple(names[i] for i in range(1, 13))


@lru_cache(maxsize=64)
def weekday_names(identifier: Optional[str], width: str = "wide") -> Tuple[str, ...]:
    """Seven weekday names, index 0 = Monday (matches ``datetime.weekday()``)."""
    names = get_day_names(width, context="format", locale=resolve_locale(identifier))
    return tuple(names[i] for i in range(7))


@lru_cache(maxsize=64)
def period_names(identifier: Optional[str]) -> Dict[str, str]:
    """``{"am": ..., "pm": ...}`` for the locale."""
    names = get_period_names(locale=resolve_locale(identifier))
    return {"am": names.get("am", "AM"), "pm": names.get("pm", "PM")}
