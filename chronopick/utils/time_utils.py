"""
Date / time format helpers.

Format strings use moment-style tokens::

    YYYY YY            year (4 digits / 2 digits, 69-99 → 19xx)
    MMMM MMM MM M      month (locale name / abbreviation / 2 digits / 1-2 digits)
    DD D               day of month
    dddd ddd           weekday (locale name / abbreviation)
    HH H hh h          hour (24h / 12h)
    mm m               minute
    ss s               second (parsed and discarded, formatted as zero)
    A a                AM/PM marker
    [text]             escaped literal text

Any other character is a literal.  Parsing is strict: the whole input must
match the format and every field must be in range.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import Dict, Iterable, Optional, Pattern, Tuple

from chronopick.models.schemas import CanonicalDate
from chronopick.utils.locale_utils import month_names, period_names, weekday_names

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"\[[^\]]*\]|YYYY|YY|MMMM|MMM|MM|M|DD|D|dddd|ddd|HH|H|hh|h|mm|m|ss|s|A|a|.",
    re.DOTALL,
)

_DIGITS: Dict[str, str] = {
    "YYYY": r"[0-9]{4}",
    "YY": r"[0-9]{2}",
    "MM": r"[0-9]{2}",
    "M": r"[0-9]{1,2}",
    "DD": r"[0-9]{2}",
    "D": r"[0-9]{1,2}",
    "HH": r"[0-9]{2}",
    "H": r"[0-9]{1,2}",
    "hh": r"[0-9]{2}",
    "h": r"[0-9]{1,2}",
    "mm": r"[0-9]{2}",
    "m": r"[0-9]{1,2}",
    "ss": r"[0-9]{2}",
    "s": r"[0-9]{1,2}",
}

_NAMED = ("MMMM", "MMM", "dddd", "ddd", "A", "a")


@dataclass(frozen=True)
class Token:
    kind: str  # one of the token names, or "literal"
    text: str


@lru_cache(maxsize=256)
def tokenize(fmt: str) -> Tuple[Token, ...]:
    tokens = []
    for match in _TOKEN_RE.finditer(fmt):
        text = match.group(0)
        if text.startswith("[") and text.endswith("]") and len(text) > 1:
            tokens.append(Token("literal", text[1:-1]))
        elif text in _DIGITS or text in _NAMED:
            tokens.append(Token(text, text))
        else:
            tokens.append(Token("literal", text))
    return tuple(tokens)


def _alternation(names: Iterable[str]) -> str:
    ordered = sorted(set(names), key=len, reverse=True)
    return "(?i:" + "|".join(re.escape(n) for n in ordered) + ")"


def _token_pattern(token: Token, locale: Optional[str]) -> str:
    if token.kind == "literal":
        return re.escape(token.text)
    if token.kind in _DIGITS:
        return _DIGITS[token.kind]
    if token.kind == "MMMM":
        return _alternation(month_names(locale, "wide"))
    if token.kind == "MMM":
        return _alternation(month_names(locale, "abbreviated"))
    if token.kind == "dddd":
        return _alternation(weekday_names(locale, "wide"))
    if token.kind == "ddd":
        return _alternation(weekday_names(locale, "abbreviated"))
    periods = period_names(locale)
    return _alternation([periods["am"], periods["pm"]])


@lru_cache(maxsize=256)
def compile_format(fmt: str, locale: Optional[str]) -> Tuple[Pattern[str], Tuple[Token, ...]]:
    """Regex with one capture group per non-literal token, plus the tokens."""
    tokens = tokenize(fmt)
    parts = []
    for token in tokens:
        pattern = _token_pattern(token, locale)
        parts.append(pattern if token.kind == "literal" else f"({pattern})")
    return re.compile("".join(parts)), tokens


def _index_of(name: str, names: Tuple[str, ...]) -> int:
    lowered = name.lower()
    for i, candidate in enumerate(names):
        if candidate.lower() == lowered:
            return i
    raise ValueError(f"Unknown name {name!r}")


class _Fields:
    """Accumulates parsed fields; a field seen twice must agree."""

    def __init__(self) -> None:
        self.values: Dict[str, int] = {}

    def set(self, name: str, item: int) -> None:
        if self.values.setdefault(name, item) != item:
            raise ValueError(f"Conflicting values for {name}")


def parse_text(text: str, fmt: str, locale: Optional[str] = None) -> Optional[CanonicalDate]:
    """
    Strictly parse *text* against *fmt*.

    Returns ``None`` on any mismatch: extra or missing characters, fields out
    of range, a weekday that disagrees with the date.
    """
    if not isinstance(text, str) or not fmt:
        return None
    regex, tokens = compile_format(fmt, locale)
    match = regex.fullmatch(text)
    if match is None:
        logger.debug("Value %r does not match format %r", text, fmt)
        return None

    found = _Fields()
    hour12: Optional[int] = None
    period: Optional[str] = None
    weekday: Optional[int] = None
    groups = iter(match.groups())
    try:
        for token in tokens:
            if token.kind == "literal":
                continue
            raw = next(groups)
            kind = token.kind
            if kind == "YYYY":
                found.set("year", int(raw))
            elif kind == "YY":
                short = int(raw)
                found.set("year", 1900 + short if short > 68 else 2000 + short)
            elif kind in ("MM", "M"):
                found.set("month", int(raw) - 1)
            elif kind == "MMMM":
                found.set("month", _index_of(raw, month_names(locale, "wide")))
            elif kind == "MMM":
                found.set("month", _index_of(raw, month_names(locale, "abbreviated")))
            elif kind in ("DD", "D"):
                found.set("day", int(raw))
            elif kind in ("HH", "H"):
                found.set("hour", int(raw))
            elif kind in ("hh", "h"):
                if hour12 is not None and hour12 != int(raw):
                    raise ValueError("Conflicting values for hour")
                hour12 = int(raw)
            elif kind in ("mm", "m"):
                found.set("minute", int(raw))
            elif kind in ("ss", "s"):
                if int(raw) > 59:
                    raise ValueError("Second out of range")
            elif kind in ("dddd", "ddd"):
                width = "wide" if kind == "dddd" else "abbreviated"
                weekday = _index_of(raw, weekday_names(locale, width))
            else:
                periods = period_names(locale)
                period = "pm" if raw.lower() == periods["pm"].lower() else "am"

        if hour12 is not None:
            if not 1 <= hour12 <= 12:
                raise ValueError("12-hour clock hour out of range")
            hour = hour12 % 12 + (12 if period == "pm" else 0)
            found.set("hour", hour)
    except ValueError as exc:
        logger.debug("Value %r rejected for format %r: %s", text, fmt, exc)
        return None

    value = CanonicalDate(**found.values)
    if not value.is_valid():
        logger.debug("Value %r is not a valid calendar date", text)
        return None
    if weekday is not None and None not in (value.year, value.month, value.day):
        if date(value.year, value.month + 1, value.day).weekday() != weekday:
            logger.debug("Weekday in %r disagrees with the date", text)
            return None
    return value


def format_value(
    value: Optional[CanonicalDate],
    fmt: str,
    locale: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    """Render *value* with *fmt*; ``""`` when the value is absent or invalid."""
    if value is None or not value.is_valid():
        return ""
    dt = value.to_datetime(today)
    if dt is None:
        return ""
    out = []
    for token in tokenize(fmt):
        kind = token.kind
        if kind == "literal":
            out.append(token.text)
        elif kind == "YYYY":
            out.append(f"{dt.year:04d}")
        elif kind == "YY":
            out.append(f"{dt.year % 100:02d}")
        elif kind == "MMMM":
            out.append(month_names(locale, "wide")[dt.month - 1])
        elif kind == "MMM":
            out.append(month_names(locale, "abbreviated")[dt.month - 1])
        elif kind == "MM":
            out.append(f"{dt.month:02d}")
        elif kind == "M":
            out.append(str(dt.month))
        elif kind == "DD":
            out.append(f"{dt.day:02d}")
        elif kind == "D":
            out.append(str(dt.day))
        elif kind == "dddd":
            out.append(weekday_names(locale, "wide")[dt.weekday()])
        elif kind == "ddd":
            out.append(weekday_names(locale, "abbreviated")[dt.weekday()])
        elif kind == "HH":
            out.append(f"{dt.hour:02d}")
        elif kind == "H":
            out.append(str(dt.hour))
        elif kind == "hh":
            out.append(f"{dt.hour % 12 or 12:02d}")
        elif kind == "h":
            out.append(str(dt.hour % 12 or 12))
        elif kind == "mm":
            out.append(f"{dt.minute:02d}")
        elif kind == "m":
            out.append(str(dt.minute))
        elif kind == "ss":
            out.append("00")
        elif kind == "s":
            out.append("0")
        else:
            marker = period_names(locale)["pm" if dt.hour >= 12 else "am"]
            out.append(marker if kind == "A" else marker.lower())
    return "".join(out)


def format_granularity(fmt: str) -> Tuple[str, ...]:
    """Canonical fields a format string carries (used for round-trip checks)."""
    carried = set()
    for token in tokenize(fmt):
        if token.kind in ("YYYY", "YY"):
            carried.add("year")
        elif token.kind in ("MMMM", "MMM", "MM", "M"):
            carried.add("month")
        elif token.kind in ("DD", "D"):
            carried.add("day")
        elif token.kind in ("HH", "H", "hh", "h"):
            carried.add("hour")
        elif token.kind in ("mm", "m"):
            carried.add("minute")
    return tuple(name for name in ("year", "month", "day", "hour", "minute") if name in carried)
