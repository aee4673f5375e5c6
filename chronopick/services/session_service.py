"""
Selection sessions.

A session is the value lifecycle engine of one input: it reacts to the
shell's interaction events, keeps the partial selection and the active mode,
and emits the output-change notification.

DateTimeSession
    year → month → day → hour → minute descent; the minute confirmation
    commits the serialised value.

MonthSession
    Single month picker; every confirmation commits immediately.

SessionRegistry
    Thread-safe in-process store used by the HTTP layer.

Interaction flow (DateTimeSession)
----------------------------------
1. ``select`` is deferred by one tick.
2. When it runs: an unselectable value (out of bounds / disabled) is
   refused.  In ``minute`` mode the selection is serialised and
   ``on_change(event, props + value)`` fires (the popup closes first when
   ``closable``).  In any other mode the selection is stored and an
   advance is scheduled for the following tick.
3. The shell (or the registry) calls :meth:`tick` once its synchronous event
   handling has returned.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from chronopick.errors import SessionNotFound
from chronopick.models.schemas import (
    CalendarMode,
    CanonicalDate,
    InputConfig,
    RenderRequest,
)
from chronopick.services.builder_service import build_value, pick_initial_date
from chronopick.services.constraint_service import (
    disabled_for_mode,
    is_selectable,
    make_bounds,
    normalize,
)
from chronopick.services.format_service import resolve_format_spec
from chronopick.services.mode_service import ModeMachine, check_start_mode
from chronopick.services.parse_service import parse_value
from chronopick.services.serialize_service import change_payload, display_value, serialize
from chronopick.utils.ticks import DeferredTaskQueue

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[Any, Dict[str, Any]], None]
Props = Union[InputConfig, Dict[str, Any]]


class BaseSession:
    """State and events shared by every input kind."""

    kind = "base"
    defaults: Dict[str, Any] = {}

    def __init__(
        self,
        props: Props,
        on_change: Optional[ChangeHandler] = None,
        queue: Optional[DeferredTaskQueue] = None,
        today: Optional[date] = None,
        locale: Optional[str] = None,
    ) -> None:
        self._defaults = dict(self.defaults)
        if locale:
            self._defaults["localization"] = locale
        self.config = props if isinstance(props, InputConfig) else InputConfig.from_props(props, **self._defaults)
        self.on_change = on_change
        self.queue = queue if queue is not None else DeferredTaskQueue()
        self.today = today
        self.popup_is_closed = True
        self._apply(self.config, self._derive(self.config))

    # configuration

    def _format(self, config: InputConfig) -> str:
        return resolve_format_spec(config.format_spec)

    def _derive(self, config: InputConfig) -> Dict[str, Any]:
        """Format, bounds and constraint sets for *config*; raises before anything is stored."""
        fmt = self._format(config)
        locale = config.localization
        return {
            "format": fmt,
            "locale": locale,
            "bounds": make_bounds(config.min_date, config.max_date, fmt, locale),
            "disabled": normalize(config.disable, fmt, locale),
            "marked": normalize(config.marked, fmt, locale),
        }

    def _apply(self, config: InputConfig, derived: Dict[str, Any]) -> None:
        self.config = config
        for name, item in derived.items():
            setattr(self, name, item)

    def update(self, props: Dict[str, Any]) -> None:
        """
        Apply changed props (the host re-rendered the input).

        A rejected update leaves the session exactly as it was.
        """
        config = self.config.with_props(props, **self._defaults)
        self._apply(config, self._derive(config))

    # popup / focus

    def open_popup(self) -> None:
        self.popup_is_closed = False

    def close_popup(self) -> None:
        self.popup_is_closed = True

    def focus(self) -> None:
        self.open_popup()

    def blur(self) -> None:
        self.close_popup()

    def navigate_back(self) -> None:
        """Header navigation; inputs with a single picker ignore it."""

    # output

    def _emit(self, event: Any, value: str) -> None:
        payload = change_payload(self.config, value)
        logger.info("%s session emitted value %r", self.kind, value)
        if self.on_change is not None:
            self.on_change(event, payload)

    def display_value(self) -> str:
        return display_value(self.config.value, self.format, self.locale)

    def tick(self) -> int:
        """Run the deferred tasks queued by the last event(s)."""
        return self.queue.drain()

    def _coerce(self, value: Any) -> Optional[CanonicalDate]:
        parsed = parse_value(value, self.format, self.locale)
        if parsed is None:
            logger.debug("Ignoring unparseable selection %r", value)
        return parsed


class DateTimeSession(BaseSession):
    """Date and time input walking through every calendar mode."""

    kind = "datetime"

    def __init__(
        self,
        props: Props,
        on_change: Optional[ChangeHandler] = None,
        queue: Optional[DeferredTaskQueue] = None,
        today: Optional[date] = None,
        locale: Optional[str] = None,
    ) -> None:
        super().__init__(props, on_change=on_change, queue=queue, today=today, locale=locale)
        self.modes = ModeMachine(
            self.config.start_mode, self.config.preserve_view_mode, self.queue
        )
        self.selection = parse_value(self.config.value, self.format, self.locale) or CanonicalDate()

    @property
    def mode(self) -> CalendarMode:
        return self.modes.mode

    def _derive(self, config: InputConfig) -> Dict[str, Any]:
        check_start_mode(config.start_mode)
        return super()._derive(config)

    def update(self, props: Dict[str, Any]) -> None:
        previous = self.config.value
        super().update(props)
        self.modes.reconfigure(self.config.start_mode, self.config.preserve_view_mode)
        if "value" in props and props["value"] != previous:
            self._adopt(parse_value(self.config.value, self.format, self.locale))

    def _adopt(self, parsed: Optional[CanonicalDate]) -> None:
        """Replace the selection with a typed value, unless it is out of bounds or disabled."""
        if parsed is None:
            return
        if not is_selectable(parsed, self.bounds, self.disabled, CalendarMode.MINUTE):
            logger.info("Ignoring typed value %s: out of bounds or disabled", parsed.to_dict())
            return
        self.selection = parsed

    # inbound events

    def select(self, event: Any, value: Any) -> None:
        """Value confirmed in the active picker (handled on the next tick)."""
        self.queue.schedule(self._handle_select, event, value)

    def _handle_select(self, event: Any, value: Any) -> None:
        chosen = self._coerce(value)
        if chosen is None:
            return
        chosen = chosen.merged_over(self.selection)
        mode = self.mode
        if not is_selectable(chosen, self.bounds, self.disabled, mode):
            logger.info("Refused %s selection %s: out of bounds or disabled", mode.value, chosen.to_dict())
            return

        if mode is CalendarMode.MINUTE:
            if self.config.closable:
                self.close_popup()
            self.selection = chosen
            self._emit(event, serialize(chosen, self.format, self.locale, self.today))
            return

        self.selection = chosen
        self.modes.advance()

    def navigate_back(self) -> None:
        self.modes.retreat()

    def focus(self) -> None:
        self.modes.on_focus()
        super().focus()

    def edit_text(self, event: Any, raw: str) -> None:
        """Keep the selection in sync with the text field."""
        self._adopt(parse_value(raw, self.format, self.locale))
        self._emit(event, raw)

    # outbound

    def render_request(self) -> RenderRequest:
        cfg = self.config
        internal = build_value(None, cfg.initial_date, self.selection, self.locale, self.format)
        initialize_with = pick_initial_date(
            internal,
            cfg.initial_date,
            self.format,
            self.locale,
            min_date=self.bounds.min_date,
            max_date=self.bounds.max_date,
            today=self.today,
        )
        mode = self.mode
        years = () if initialize_with.year is None else (initialize_with.year,)
        return RenderRequest(
            mode=mode,
            value=build_value(cfg.value, None, None, self.locale, self.format),
            initialize_with=initialize_with,
            min_date=self.bounds.min_date,
            max_date=self.bounds.max_date,
            disable=disabled_for_mode(mode, self.disabled, self.bounds, years),
            marked=self.marked if mode is CalendarMode.DAY else frozenset(),
            mark_color=cfg.mark_color if mode is CalendarMode.DAY else None,
            localization=self.locale,
            time_format=str(cfg.time_format),
            popup_is_closed=self.popup_is_closed,
            passthrough=dict(cfg.passthrough),
        )


class MonthSession(BaseSession):
    """Month-only input; the format carries the month alone."""

    kind = "month"
    defaults = {"date_format": "MMM"}

    def _format(self, config: InputConfig) -> str:
        return config.date_format

    @property
    def mode(self) -> CalendarMode:
        return CalendarMode.MONTH

    def select(self, event: Any, value: Any) -> None:
        chosen = self._coerce(value)
        if chosen is None or chosen.month is None:
            return
        month = CanonicalDate(month=chosen.month)
        if not is_selectable(month, self.bounds, self.disabled, CalendarMode.MONTH):
            logger.info("Refused month selection %s", month.to_dict())
            return
        self._emit(event, serialize(month, self.format, self.locale, self.today))
        if self.config.closable:
            self.close_popup()

    def edit_text(self, event: Any, raw: str) -> None:
        self._emit(event, raw)

    def render_request(self) -> RenderRequest:
        cfg = self.config
        value = build_value(cfg.value, None, None, self.locale, self.format)
        return RenderRequest(
            mode=CalendarMode.MONTH,
            value=value,
            initialize_with=pick_initial_date(
                value,
                cfg.initial_date,
                self.format,
                self.locale,
                min_date=self.bounds.min_date,
                max_date=self.bounds.max_date,
                today=self.today,
            ),
            min_date=self.bounds.min_date,
            max_date=self.bounds.max_date,
            disable=self.disabled,
            marked=frozenset(),
            mark_color=None,
            localization=self.locale,
            time_format=str(cfg.time_format),
            popup_is_closed=self.popup_is_closed,
            passthrough=dict(cfg.passthrough),
        )


SESSION_KINDS = {
    DateTimeSession.kind: DateTimeSession,
    MonthSession.kind: MonthSession,
}

Session = Union[DateTimeSession, MonthSession]


# ── Registry ─────────────────────────────────────────────────────────────────

class SessionRegistry:
    """
    In-process store of live sessions.

    Each session collects the payloads it emits in an outbox that
    :meth:`dispatch` hands back to the caller.  When ``max_sessions`` is
    reached the least recently used session is dropped.
    """

    def __init__(self, max_sessions: int = 1000, default_locale: Optional[str] = None) -> None:
        self.max_sessions = max_sessions
        self.default_locale = default_locale
        self._lock = threading.Lock()
        self._sessions: "OrderedDict[str, Tuple[Session, List[Dict[str, Any]]]]" = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self, props: Dict[str, Any], kind: str = "datetime", today: Optional[date] = None) -> Tuple[str, Session]:
        try:
            factory = SESSION_KINDS[kind]
        except KeyError as exc:
            raise ValueError(f"Unknown session kind {kind!r}; expected one of {sorted(SESSION_KINDS)}.") from exc
        outbox: List[Dict[str, Any]] = []
        session = factory(
            props,
            on_change=lambda _event, payload: outbox.append(payload),
            today=today,
            locale=self.default_locale,
        )
        session_id = uuid.uuid4().hex
        with self._lock:
            self._sessions[session_id] = (session, outbox)
            while len(self._sessions) > self.max_sessions:
                dropped, _ = self._sessions.popitem(last=False)
                logger.info("Evicted session %s", dropped)
        logger.info("Created %s session %s", kind, session_id)
        return session_id, session

    def get(self, session_id: str) -> Session:
        with self._lock:
            return self._entry(session_id)[0]

    def _entry(self, session_id: str) -> Tuple[Session, List[Dict[str, Any]]]:
        try:
            entry = self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(session_id) from None
        self._sessions.move_to_end(session_id)
        return entry

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFound(session_id)
        logger.info("Deleted session %s", session_id)

    def snapshot(self, session_id: str) -> Dict[str, Any]:
        """Render the session while holding the lock."""
        with self._lock:
            return render_snapshot(session_id, self._entry(session_id)[0])

    def dispatch(self, session_id: str, event: Dict[str, Any]) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
        """
        Deliver one interaction event, then drain the session's ticks.

        Returns the session snapshot rendered after the event and the
        output-change payloads emitted while handling it.
        """
        with self._lock:
            session, outbox = self._entry(session_id)
            apply_event(session, event)
            session.tick()
            changes = list(outbox)
            outbox.clear()
            return render_snapshot(session_id, session), changes


def render_snapshot(session_id: str, session: Session) -> Dict[str, Any]:
    return {
        "id": session_id,
        "kind": session.kind,
        "displayValue": session.display_value(),
        "render": session.render_request().to_dict(),
    }


def apply_event(session: Session, event: Dict[str, Any]) -> None:
    """Route a shell event ``{"type": ..., ...}`` to the session handler."""
    kind = event.get("type")
    if kind == "select":
        if "value" not in event:
            raise ValueError("'select' event requires a 'value'.")
        session.select(event, event["value"])
    elif kind == "navigate_back":
        session.navigate_back()
    elif kind == "focus":
        session.focus()
    elif kind == "blur":
        session.blur()
    elif kind == "edit_text":
        raw = event.get("value")
        if not isinstance(raw, str):
            raise ValueError("'edit_text' event requires a string 'value'.")
        session.edit_text(event, raw)
    elif kind == "update":
        props = event.get("props")
        if not isinstance(props, dict):
            raise ValueError("'update' event requires a 'props' object.")
        session.update(props)
    else:
        raise ValueError(f"Unknown event type: {kind!r}")
