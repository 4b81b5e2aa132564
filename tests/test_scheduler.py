import threading

import pytest

from eth_da_relayer.errors import SchedulerConfigError
from eth_da_relayer.scheduler import IntervalTask, make_interval_task


def make_task(handler, timer_factory, start_delay=15, interval=15):
    return IntervalTask(start_delay, interval, "Monitor-test", {"ctx": True}, handler, timer_factory=timer_factory)


@pytest.mark.parametrize("start_delay,interval", [(0, 15), (15, 0), (-1, 15), (15, -5)])
def test_invalid_arguments_fail_construction(start_delay, interval, timer_factory):
    with pytest.raises(SchedulerConfigError):
        make_interval_task(start_delay, interval, "bad", None, lambda ctx: None, timer_factory=timer_factory)


def test_first_run_after_start_delay(timer_factory):
    calls = []
    task = make_task(calls.append, timer_factory, start_delay=5, interval=15)
    assert timer_factory.timers == []
    task.start()
    assert task.running
    assert timer_factory.last.delay == 5
    assert timer_factory.last.started

    timer_factory.last.fire()
    assert calls == [{"ctx": True}]
    assert timer_factory.last.delay == 15
    assert len(timer_factory.timers) == 2


def test_failing_handler_keeps_schedule(timer_factory):
    calls = []

    def handler(ctx):
        calls.append(ctx)
        raise RuntimeError("boom")

    task = make_task(handler, timer_factory)
    task.start()
    for _ in range(5):
        timer_factory.last.fire()
    assert len(calls) == 5
    assert len(timer_factory.timers) == 6
    assert not timer_factory.last.cancelled


def test_stop_cancels_pending_run(timer_factory):
    calls = []
    task = make_task(calls.append, timer_factory)
    task.start()
    pending = timer_factory.last
    assert task.stop() is True
    assert pending.cancelled
    assert not task.running

    # A timer that fires despite being cancelled does nothing.
    pending.fire()
    assert calls == []
    assert len(timer_factory.timers) == 1


def test_stop_is_idempotent(timer_factory):
    task = make_task(lambda ctx: None, timer_factory)
    task.start()
    assert task.stop() is True
    assert task.stop() is True
    assert sum(1 for t in timer_factory.timers if t.cancelled) == 1


def test_stop_before_start(timer_factory):
    task = make_task(lambda ctx: None, timer_factory)
    assert task.stop() is True
    assert timer_factory.timers == []


def test_stop_during_run_prevents_reschedule(timer_factory):
    holder = {}

    def handler(ctx):
        holder["task"].stop()

    task = make_task(handler, timer_factory)
    holder["task"] = task
    task.start()
    timer_factory.last.fire()
    assert len(timer_factory.timers) == 1
    assert not task.running


def test_start_twice_schedules_once(timer_factory):
    task = make_task(lambda ctx: None, timer_factory)
    task.start()
    task.start()
    assert len(timer_factory.timers) == 1


def test_runs_on_real_timers():
    done = threading.Event()
    calls = []

    def handler(ctx):
        calls.append(ctx)
        if len(calls) >= 3:
            done.set()

    task = IntervalTask(0.01, 0.01, "real-timer", "ctx", handler)
    task.start()
    try:
        assert done.wait(timeout=5)
    finally:
        task.stop()
    assert calls[:3] == ["ctx", "ctx", "ctx"]


def pending_timers(timer_factory):
    return [t for t in timer_factory.timers if not t.cancelled and not getattr(t, "fired", False)]


def test_restart_during_run_keeps_single_pending_run(timer_factory):
    holder = {}
    calls = []

    def handler(ctx):
        calls.append(ctx)
        if len(calls) == 1:
            holder["task"].stop()
            holder["task"].start()

    task = make_task(handler, timer_factory)
    holder["task"] = task
    task.start()
    first = timer_factory.last
    first.fire()
    first.fired = True

    assert task.running
    assert len(pending_timers(timer_factory)) == 1
    assert timer_factory.last.delay == 15

    timer_factory.last.fire()
    assert len(calls) == 2


def test_stale_timer_after_restart_is_ignored(timer_factory):
    calls = []
    task = make_task(calls.append, timer_factory)
    task.start()
    stale = timer_factory.last
    task.stop()
    task.start()
    current = timer_factory.last
    assert current is not stale

    # The old timer fires anyway (cancel lost the race); it must not run or drop the new one.
    stale.fire()
    assert calls == []
    assert len(timer_factory.timers) == 2
    assert not current.cancelled

    current.fire()
    assert len(calls) == 1
    assert len(timer_factory.timers) == 3
    task.stop()
    assert timer_factory.last.cancelled
