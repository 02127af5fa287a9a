import asyncio
import logging

import pytest

from dodgeball.core.scheduler import (
    AsyncioScheduler, RunScope, TimerGroup, TimerHandle, VirtualScheduler,
)


def test_call_later_fires_once_at_due_time(scheduler):
    fired = []
    scheduler.call_later(100, lambda: fired.append(scheduler.now()))

    scheduler.advance(99)
    assert fired == []
    scheduler.advance(1)
    assert fired == [100]
    scheduler.advance(1000)
    assert fired == [100]


def test_ties_fire_in_arming_order(scheduler):
    order = []
    scheduler.call_later(50, lambda: order.append("a"))
    scheduler.call_later(50, lambda: order.append("b"))
    scheduler.call_later(20, lambda: order.append("early"))

    scheduler.advance(50)

    assert order == ["early", "a", "b"]


def test_cancel_is_idempotent_and_prevents_firing(scheduler):
    fired = []
    handle = scheduler.call_later(10, lambda: fired.append(1))

    handle.cancel()
    handle.cancel()
    scheduler.advance(100)

    assert fired == []
    assert handle.cancelled
    assert not handle.active
    assert scheduler.pending == 0


def test_handle_done_after_firing(scheduler):
    handle = scheduler.call_later(5, lambda: None)
    assert handle.active
    scheduler.advance(5)
    assert not handle.active
    assert not handle.cancelled


def test_call_every_repeats_until_cancelled(scheduler):
    times = []
    handle = scheduler.call_every(30, lambda: times.append(scheduler.now()))

    scheduler.advance(100)
    handle.cancel()
    scheduler.advance(100)

    assert times == [30, 60, 90]


def test_call_every_rereads_callable_interval_on_rearm(scheduler):
    period = {"ms": 100}
    times = []
    scheduler.call_every(lambda: period["ms"], lambda: times.append(scheduler.now()))

    scheduler.advance(100)
    period["ms"] = 40
    scheduler.advance(100)
    assert times == [100, 200]

    scheduler.advance(80)
    assert times == [100, 200, 240, 280]


def test_callback_can_cancel_its_own_repeat(scheduler):
    calls = []
    holder = {}

    def once():
        calls.append(scheduler.now())
        holder["handle"].cancel()

    holder["handle"] = scheduler.call_every(10, once)
    scheduler.advance(100)

    assert calls == [10]


def test_failing_callback_is_logged_and_timer_keeps_running(scheduler, caplog):
    calls = []

    def flaky():
        calls.append(1)
        raise RuntimeError("tick failed")

    scheduler.call_every(10, flaky, name="flaky")
    with caplog.at_level(logging.ERROR):
        scheduler.advance(30)

    assert len(calls) == 3
    assert "flaky" in caplog.text


def test_request_frames_passes_timestamps(scheduler):
    stamps = []
    scheduler.request_frames(stamps.append)

    scheduler.advance(35)

    assert stamps == [10, 20, 30]


def test_invalid_arguments():
    with pytest.raises(ValueError):
        VirtualScheduler(frame_interval_ms=0)
    vs = VirtualScheduler()
    with pytest.raises(ValueError):
        vs.call_later(-1, lambda: None)
    with pytest.raises(ValueError):
        vs.advance(-5)


def test_timer_group_cancels_only_live_handles(scheduler):
    group = TimerGroup("test")
    group.add(scheduler.call_later(5, lambda: None))
    group.add(scheduler.call_later(50, lambda: None))
    group.add(scheduler.call_every(20, lambda: None))
    scheduler.advance(10)

    assert len(group) == 2
    assert group.cancel_all() == 2
    assert len(group) == 0
    assert scheduler.pending == 0


def test_timer_handle_repr():
    assert "pending" in repr(TimerHandle("x"))


def test_run_scope_close_cancels_everything(scheduler):
    scope = RunScope(scheduler)
    generation = scope.open()
    fired = []
    scope.call_later(50, lambda: fired.append("later"))
    scope.call_every(20, lambda: fired.append("every"))
    scope.request_frames(lambda ts: fired.append("frame"))

    assert scope.close() == 3
    assert not scope.is_open
    scheduler.advance(200)

    assert fired == []
    assert scope.open() == generation + 1


def test_run_scope_drops_callbacks_from_an_older_generation(scheduler):
    scope = RunScope(scheduler)
    scope.open()
    fired = []
    handle = scheduler.call_later(10, scope._guard(lambda: fired.append("stale")))
    scope.open()

    scheduler.advance(20)

    assert handle.active is False
    assert fired == []


def test_run_scope_ignores_callbacks_while_closed(scheduler):
    scope = RunScope(scheduler)
    fired = []
    guarded = scope._guard(lambda: fired.append(1))
    guarded()
    assert fired == []


def test_asyncio_scheduler_runs_on_the_event_loop():
    async def scenario():
        sched = AsyncioScheduler(frame_interval_ms=5)
        fired = []
        ticks = []
        start = sched.now()

        sched.call_later(10, lambda: fired.append(sched.now() - start))
        repeating = sched.call_every(5, lambda: ticks.append(1))
        cancelled = sched.call_later(10, lambda: fired.append("cancelled"))
        cancelled.cancel()

        await asyncio.sleep(0.08)
        repeating.cancel()
        count = len(ticks)
        await asyncio.sleep(0.03)
        return fired, count, len(ticks)

    fired, count_at_cancel, count_after = asyncio.run(scenario())

    assert len(fired) == 1
    assert fired[0] >= 9
    assert count_at_cancel >= 3
    assert count_after == count_at_cancel


def test_asyncio_scheduler_needs_a_running_loop():
    sched = AsyncioScheduler()
    with pytest.raises(RuntimeError):
        sched.now()
