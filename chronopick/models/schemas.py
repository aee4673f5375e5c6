"""
Immutable data models for the date/time selection engine.

These dataclasses travel between the route → service → model layers.
Apart from the invariants they guard (calendar validity, bound ordering)
no business logic lives here.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple, Union

from chronopick.errors import InvalidConfiguration


# ── Calendar modes ───────────────────────────────────────────────────────────

class CalendarMode(str, Enum):
    YEAR = "year"
    MONTH = "month"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"

    @classmethod
    def coerce(cls, raw: Union[str, "CalendarMode"]) -> "CalendarMode":
        try:
            return cls(raw)
        except ValueError as exc:
            raise InvalidConfiguration(f"Unknown calendar mode: {raw!r}") from exc


#Field names ordered from most to least significant
DATE_FIELDS: Tuple[str, ...] = ("year", "month", "day", "hour", "minute")

_MODE_DEPTH = {
    CalendarMode.YEAR: 1,
    CalendarMode.MONTH: 2,
    CalendarMode.DAY: 3,
    CalendarMode.HOUR: 4,
    CalendarMode.MINUTE: 5,
}


def fields_for(mode: CalendarMode) -> Tuple[str, ...]:
    """Fields that identify a cell of the picker for *mode*."""
    return DATE_FIELDS[: _MODE_DEPTH[mode]]


# ── Canonical date ───────────────────────────────────────────────────────────

_INT_TEXT = re.compile(r"-?[0-9]+")


def _as_int(name: str, item: Any) -> int:
    """Whole numbers only: ``5``, ``5.0`` and ``"5"`` pass, ``5.7`` and ``"5.7"`` do not."""
    if isinstance(item, bool):
        raise ValueError(f"Field {name!r} must be an integer.")
    if isinstance(item, int):
        return item
    if isinstance(item, float) and item.is_integer():
        return int(item)
    if isinstance(item, str) and _INT_TEXT.fullmatch(item.strip()):
        return int(item)
    raise ValueError(f"Field {name!r} must be an integer, got {item!r}.")


@dataclass(frozen=True)
class CanonicalDate:
    """
    Structured date/time value, independent of any textual format.

    Every field is optional; ``month`` is 0-based.  An instance with all
    fields absent means "no value".  Ordering compares the fields that both
    operands specify, most significant first.
    """
    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None
    hour: Optional[int] = None
    minute: Optional[int] = None

    # construction

    @classmethod
    def from_datetime(cls, value: Union[date, datetime]) -> "CanonicalDate":
        if isinstance(value, datetime):
            return cls(value.year, value.month - 1, value.day, value.hour, value.minute)
        return cls(value.year, value.month - 1, value.day)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CanonicalDate":
        """Build from a mapping; ``date`` is accepted as an alias of ``day``."""
        values: Dict[str, Optional[int]] = {}
        for name in DATE_FIELDS:
            item = raw.get(name)
            if item is None and name == "day":
                item = raw.get("date")
            values[name] = None if item is None else _as_int(name, item)
        return cls(**values)

    # inspection

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in DATE_FIELDS)

    def present(self) -> Iterator[Tuple[str, int]]:
        for name in DATE_FIELDS:
            item = getattr(self, name)
            if item is not None:
                yield name, item

    def is_valid(self) -> bool:
        """Check each present field against Gregorian calendar ranges."""
        if self.is_empty():
            return False
        if self.month is not None and not 0 <= self.month <= 11:
            return False
        if self.day is not None:
            # Without a year, allow 29 February.
            year = self.year if self.year is not None else 2000
            month = self.month + 1 if self.month is not None else 1
            max_day = 31 if self.month is None else calendar.monthrange(year, month)[1]
            if not 1 <= self.day <= max_day:
                return False
        if self.year is not None and not 1 <= self.year <= 9999:
            return False
        if self.hour is not None and not 0 <= self.hour <= 23:
            return False
        if self.minute is not None and not 0 <= self.minute <= 59:
            return False
        return True

    # derivation

    def merged_over(self, base: Optional["CanonicalDate"]) -> "CanonicalDate":
        """Return *base* with every present field of ``self`` written over it."""
        if base is None:
            return self
        return replace(base, **dict(self.present()))

    def truncate(self, mode: CalendarMode) -> "CanonicalDate":
        keep = fields_for(mode)
        return CanonicalDate(**{name: getattr(self, name) for name in keep})

    def to_datetime(self, today: Optional[date] = None) -> Optional[datetime]:
        """
        Concrete ``datetime`` for this value.

        Missing year/month/day are taken from *today* (the day is clamped to
        the length of the month); missing hour/minute default to zero.
        Returns ``None`` when the fields do not form a real calendar date.
        """
        if self.is_empty():
            return None
        today = today or date.today()
        year = self.year if self.year is not None else today.year
        month = (self.month if self.month is not None else today.month - 1) + 1
        day = self.day
        try:
            if day is None:
                day = min(today.day, calendar.monthrange(year, month)[1])
            return datetime(year, month, day, self.hour or 0, self.minute or 0)
        except (ValueError, OverflowError):
            return None

    def to_dict(self) -> Dict[str, int]:
        return dict(self.present())

    # ordering

    def compare(self, other: "CanonicalDate") -> int:
        """-1 / 0 / 1 over the fields both values specify."""
        for name in DATE_FIELDS:
            mine, theirs = getattr(self, name), getattr(other, name)
            if mine is None or theirs is None:
                break
            if mine != theirs:
                return -1 if mine < theirs else 1
        return 0

    def __lt__(self, other: "CanonicalDate") -> bool:
        return self.compare(other) < 0

    def __le__(self, other: "CanonicalDate") -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: "CanonicalDate") -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: "CanonicalDate") -> bool:
        return self.compare(other) >= 0


#In-progress state accumulated while descending through modes
PartialSelection = CanonicalDate


# ── Raw values (tagged variant) ──────────────────────────────────────────────

@dataclass(frozen=True)
class EmptyValue:
    """Absent or blank caller input."""


@dataclass(frozen=True)
class SingleText:
    text: str


@dataclass(frozen=True)
class TextList:
    """A list of raw items; each may itself be text or structured."""
    items: Tuple[Any, ...]


@dataclass(frozen=True)
class Structured:
    value: CanonicalDate


RawValue = Union[EmptyValue, SingleText, TextList, Structured]


def classify_raw(raw: Any) -> RawValue:
    """Wrap arbitrary caller input in its :data:`RawValue` variant."""
    if raw is None:
        return EmptyValue()
    if isinstance(raw, (EmptyValue, SingleText, TextList, Structured)):
        return raw
    if isinstance(raw, str):
        return SingleText(raw) if raw.strip() else EmptyValue()
    if isinstance(raw, CanonicalDate):
        return EmptyValue() if raw.is_empty() else Structured(raw)
    if isinstance(raw, (datetime, date)):
        return Structured(CanonicalDate.from_datetime(raw))
    if isinstance(raw, dict):
        try:
            value = CanonicalDate.from_dict(raw)
        except (ValueError, TypeError):
            return EmptyValue()
        return EmptyValue() if value.is_empty() else Structured(value)
    if isinstance(raw, (list, tuple, set, frozenset)):
        return TextList(tuple(raw)) if raw else EmptyValue()
    return EmptyValue()


# ── Configuration records ────────────────────────────────────────────────────

@dataclass(frozen=True)
class FormatSpec:
    """
    Inputs to the format resolver.

    When ``date_time_format`` is set it fully overrides the
    ``date_format + divider + time`` composition.
    """
    date_format: str = "DD-MM-YYYY"
    time_format: str = "24"
    divider: str = " "
    date_time_format: Optional[str] = None


@dataclass(frozen=True)
class Bounds:
    """Inclusive selection window; an absent side is unbounded."""
    min_date: Optional[CanonicalDate] = None
    max_date: Optional[CanonicalDate] = None

    def __post_init__(self) -> None:
        if (
            self.min_date is not None
            and self.max_date is not None
            and self.min_date > self.max_date
        ):
            raise InvalidConfiguration(
                f"minDate {self.min_date.to_dict()} is after maxDate "
                f"{self.max_date.to_dict()}."
            )


#Props owned by the engine; everything else is forwarded to the renderer
CORE_PROPS: Dict[str, str] = {
    "value": "value",
    "dateFormat": "date_format",
    "timeFormat": "time_format",
    "divider": "divider",
    "dateTimeFormat": "date_time_format",
    "startMode": "start_mode",
    "preserveViewMode": "preserve_view_mode",
    "closable": "closable",
    "minDate": "min_date",
    "maxDate": "max_date",
    "disable": "disable",
    "marked": "marked",
    "markColor": "mark_color",
    "localization": "localization",
    "initialDate": "initial_date",
}


@dataclass(frozen=True)
class InputConfig:
    """
    Resolved configuration surface of one input.

    Built once per configuration change from the caller's props.  Unknown
    props are kept verbatim in ``passthrough`` so the caller's full props can
    be reproduced by :meth:`as_props`.
    """
    value: Any = None
    date_format: str = "DD-MM-YYYY"
    time_format: str = "24"
    divider: str = " "
    date_time_format: Optional[str] = None
    start_mode: CalendarMode = CalendarMode.DAY
    preserve_view_mode: bool = True
    closable: bool = False
    min_date: Any = None
    max_date: Any = None
    disable: Any = None
    marked: Any = None
    mark_color: Optional[str] = None
    localization: str = "en"
    initial_date: Any = None
    passthrough: Dict[str, Any] = field(default_factory=dict)
    # the caller's props exactly as given
    props: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_props(cls, props: Dict[str, Any], **defaults: Any) -> "InputConfig":
        values: Dict[str, Any] = dict(defaults)
        passthrough: Dict[str, Any] = {}
        for key, item in props.items():
            attr = CORE_PROPS.get(key)
            if attr is None:
                passthrough[key] = item
            elif item is not None or attr not in _NON_NULL:
                values[attr] = item
        if "start_mode" in values:
            values["start_mode"] = CalendarMode.coerce(values["start_mode"])
        return cls(**values, passthrough=passthrough, props=dict(props))

    @property
    def format_spec(self) -> FormatSpec:
        return FormatSpec(
            date_format=self.date_format,
            time_format=str(self.time_format),
            divider=self.divider,
            date_time_format=self.date_time_format or None,
        )

    def with_props(self, changes: Dict[str, Any], **defaults: Any) -> "InputConfig":
        return InputConfig.from_props({**self.props, **changes}, **defaults)

    def as_props(self) -> Dict[str, Any]:
        return dict(self.props)


#Attributes whose default is kept when the caller passes an explicit None
_NON_NULL = frozenset(
    {"date_format", "time_format", "divider", "start_mode", "preserve_view_mode",
     "closable", "localization"}
)


# ── Render request (outbound to the UI shell) ────────────────────────────────

def sort_key(value: CanonicalDate) -> Tuple[int, ...]:
    """Total order key; absent fields sort first."""
    return tuple(-1 if item is None else item for item in (
        getattr(value, name) for name in DATE_FIELDS
    ))


def _dates_to_list(values) -> List[Dict[str, int]]:
    return [v.to_dict() for v in sorted(values, key=sort_key)]


@dataclass(frozen=True)
class RenderRequest:
    """Everything the shell needs to draw the active picker."""
    mode: CalendarMode
    value: Optional[CanonicalDate]
    initialize_with: CanonicalDate
    min_date: Optional[CanonicalDate]
    max_date: Optional[CanonicalDate]
    disable: FrozenSet[Any]
    marked: FrozenSet[CanonicalDate]
    mark_color: Optional[str]
    localization: str
    time_format: str
    popup_is_closed: bool
    passthrough: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        # years are ints, fully disabled months are (year, month) pairs
        years = sorted(item for item in self.disable if isinstance(item, int))
        months = sorted(item for item in self.disable if isinstance(item, tuple))
        dates = [item for item in self.disable if isinstance(item, CanonicalDate)]
        disable: List[Any] = [
            *years,
            *({"year": y, "month": m} for y, m in months),
            *_dates_to_list(dates),
        ]
        return {
            "mode": self.mode.value,
            "value": self.value.to_dict() if self.value is not None else None,
            "initializeWith": self.initialize_with.to_dict(),
            "minDate": self.min_date.to_dict() if self.min_date is not None else None,
            "maxDate": self.max_date.to_dict() if self.max_date is not None else None,
            "disable": disable,
            "marked": _dates_to_list(self.marked),
            "markColor": self.mark_color,
            "localization": self.localization,
            "timeFormat": self.time_format,
            "popupIsClosed": self.popup_is_closed,
            "passthrough": self.passthrough,
        }
