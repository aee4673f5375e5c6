import pytest

from chronopick.errors import InvalidConfiguration
from chronopick.models.schemas import CalendarMode
from chronopick.services.mode_service import ModeMachine, next_mode, prev_mode
from chronopick.utils.ticks import DeferredTaskQueue


def test_forward_and_backward_cycles():
    assert next_mode(CalendarMode.YEAR) is CalendarMode.MONTH
    assert next_mode(CalendarMode.MINUTE) is CalendarMode.YEAR
    assert prev_mode(CalendarMode.YEAR) is CalendarMode.MINUTE
    assert prev_mode(CalendarMode.DAY) is CalendarMode.MONTH


@pytest.mark.parametrize("mode", list(CalendarMode))
def test_cycle_closure(mode):
    forward = backward = mode
    for _ in range(5):
        forward = next_mode(forward)
        backward = prev_mode(backward)
    assert forward is mode
    assert backward is mode


@pytest.mark.parametrize("mode", list(CalendarMode))
def test_prev_inverts_next(mode):
    assert prev_mode(next_mode(mode)) is mode


def test_transitions_are_deferred_until_the_queue_drains():
    machine = ModeMachine(CalendarMode.DAY)
    machine.advance()
    assert machine.mode is CalendarMode.DAY
    assert machine.queue.drain() == 1
    assert machine.mode is CalendarMode.HOUR


def test_queued_transitions_apply_to_the_latest_state():
    machine = ModeMachine(CalendarMode.DAY)
    machine.advance()
    machine.advance()
    machine.retreat()
    machine.queue.drain()
    assert machine.mode is CalendarMode.HOUR


def test_listeners_observe_each_switch():
    seen = []
    machine = ModeMachine(CalendarMode.YEAR)
    machine.on_switch(seen.append)
    machine.advance()
    machine.retreat()
    machine.retreat()
    machine.queue.drain()
    assert seen == [CalendarMode.MONTH, CalendarMode.YEAR, CalendarMode.MINUTE]


def test_focus_resets_unless_preserving():
    machine = ModeMachine(CalendarMode.DAY, preserve_view_mode=False)
    machine.advance()
    machine.advance()
    machine.queue.drain()
    assert machine.mode is CalendarMode.MINUTE
    machine.on_focus()
    assert machine.mode is CalendarMode.DAY

    kept = ModeMachine(CalendarMode.DAY, preserve_view_mode=True)
    kept.advance()
    kept.queue.drain()
    kept.on_focus()
    assert kept.mode is CalendarMode.HOUR


def test_shared_queue_runs_fifo():
    queue = DeferredTaskQueue()
    order = []
    machine = ModeMachine("month", queue=queue)
    queue.schedule(order.append, "first")
    machine.advance()
    queue.schedule(lambda: order.append(machine.mode))
    queue.drain()
    assert order == ["first", CalendarMode.DAY]


@pytest.mark.parametrize("start", ["hour", "minute", "week"])
def test_start_mode_must_be_a_date_mode(start):
    with pytest.raises(InvalidConfiguration):
        ModeMachine(start)
