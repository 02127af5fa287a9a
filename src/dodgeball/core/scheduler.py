"""
Cooperative timer scheduling for the simulation.

Every deferred callback in a run (frame ticks, spawn intervals, effect
expiry) goes through a ``Scheduler``. All implementations execute
callbacks on one thread, one at a time, so the entity store never sees
concurrent mutation.

Two backends:
    AsyncioScheduler: timers on the running asyncio event loop
    VirtualScheduler: explicit virtual clock, advanced by the caller
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Union
import asyncio
import heapq
import itertools
import logging

logger = logging.getLogger(__name__)

Interval = Union[float, Callable[[], float]]


class TimerHandle:
    """Cancellable reference to a scheduled callback."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._cancelled = False
        self._done = False
        self._cancel_hook: Callable[[], None] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        """True while the callback may still fire."""
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        """Cancel the callback. Safe to call more than once."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._cancel_hook is not None:
            self._cancel_hook()
            self._cancel_hook = None

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else ("done" if self._done else "pending")
        return f"<TimerHandle {self.name or '?'} {state}>"


class TimerGroup:
    """
    Collects the handles armed for one run so they can be
    cancelled together in a single synchronous call.
    """

    def __init__(self, name: str = "run") -> None:
        self.name = name
        self._handles: list[TimerHandle] = []

    def add(self, handle: TimerHandle) -> TimerHandle:
        self._handles = [h for h in self._handles if h.active]
        self._handles.append(handle)
        return handle

    def cancel_all(self) -> int:
        """Cancel every pending handle. Returns how many were live."""
        live = [h for h in self._handles if h.active]
        for handle in live:
            handle.cancel()
        self._handles.clear()
        if live:
            logger.debug(f"TimerGroup {self.name}: cancelled {len(live)} timers")
        return len(live)

    def __len__(self) -> int:
        return sum(1 for h in self._handles if h.active)


class Scheduler(ABC):
    """
    Abstract single-threaded scheduler.

    Subclasses provide a clock and a primitive one-shot timer; the
    repeating and per-frame variants are built on top of it here.
    All times are in milliseconds.
    """

    def __init__(self, frame_interval_ms: float = 1000.0 / 60) -> None:
        if frame_interval_ms <= 0:
            raise ValueError(f"frame interval must be positive, got {frame_interval_ms}")
        self.frame_interval_ms = frame_interval_ms

    @abstractmethod
    def now(self) -> float:
        """Current time in milliseconds."""
        ...

    @abstractmethod
    def _schedule(self, delay_ms: float, fn: Callable[[], None]) -> Any:
        """Arm a raw one-shot timer and return a backend token."""
        ...

    @abstractmethod
    def _unschedule(self, token: Any) -> None:
        """Disarm a raw timer by token."""
        ...

    def _run_guarded(self, handle: TimerHandle, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Error in scheduled callback {handle.name or callback!r}: {e}")

    def call_later(
        self,
        delay_ms: float,
        callback: Callable[[], None],
        name: str = ""
    ) -> TimerHandle:
        """Run ``callback`` once after ``delay_ms``."""
        if delay_ms < 0:
            raise ValueError(f"delay must be non-negative, got {delay_ms}")

        handle = TimerHandle(name)

        def fire() -> None:
            if handle.cancelled:
                return
            handle._done = True
            handle._cancel_hook = None
            self._run_guarded(handle, callback)

        token = self._schedule(delay_ms, fire)
        handle._cancel_hook = lambda: self._unschedule(token)
        return handle

    def call_every(
        self,
        interval_ms: Interval,
        callback: Callable[[], None],
        name: str = ""
    ) -> TimerHandle:
        """
        Run ``callback`` repeatedly.

        ``interval_ms`` may be a callable; it is re-read every time the
        timer re-arms, so a changing period takes effect on the next firing.
        """
        handle = TimerHandle(name)

        def next_delay() -> float:
            delay = interval_ms() if callable(interval_ms) else interval_ms
            return max(1.0, float(delay))

        def arm() -> None:
            token = self._schedule(next_delay(), fire)
            handle._cancel_hook = lambda: self._unschedule(token)

        def fire() -> None:
            if handle.cancelled:
                return
            self._run_guarded(handle, callback)
            if not handle.cancelled:
                arm()

        arm()
        return handle

    def request_frames(
        self,
        callback: Callable[[float], None],
        name: str = "frames"
    ) -> TimerHandle:
        """Invoke ``callback(timestamp_ms)`` once per display frame."""
        return self.call_every(
            self.frame_interval_ms,
            lambda: callback(self.now()),
            name=name,
        )


class AsyncioScheduler(Scheduler):
    """Scheduler backed by the asyncio event loop's timer queue."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        frame_interval_ms: float = 1000.0 / 60
    ) -> None:
        super().__init__(frame_interval_ms)
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time() * 1000.0

    def _schedule(self, delay_ms: float, fn: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay_ms / 1000.0, fn)

    def _unschedule(self, token: asyncio.TimerHandle) -> None:
        token.cancel()


class VirtualScheduler(Scheduler):
    """
    Deterministic scheduler on a virtual clock.

    Nothing fires until ``advance`` is called. Callbacks run in due-time
    order; callbacks due at the same instant run in the order they were armed.
    """

    def __init__(self, frame_interval_ms: float = 1000.0 / 60, start_ms: float = 0.0) -> None:
        super().__init__(frame_interval_ms)
        self._now = start_ms
        self._queue: list[list[Any]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def _schedule(self, delay_ms: float, fn: Callable[[], None]) -> list[Any]:
        entry = [self._now + delay_ms, next(self._seq), fn]
        heapq.heappush(self._queue, entry)
        return entry

    def _unschedule(self, token: list[Any]) -> None:
        token[2] = None

    @property
    def pending(self) -> int:
        """Number of raw timers still armed."""
        return sum(1 for entry in self._queue if entry[2] is not None)

    def advance(self, ms: float) -> None:
        """Move the clock forward by ``ms``, firing everything that falls due."""
        if ms < 0:
            raise ValueError(f"cannot advance by negative time {ms}")
        target = self._now + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, fn = heapq.heappop(self._queue)
            self._now = due
            if fn is not None:
                fn()
        self._now = target


class RunScope:
    """
    Timers armed on behalf of one run.

    While the scope is open, callbacks armed through it behave normally.
    ``close`` cancels every outstanding handle synchronously; anything that
    still manages to fire afterwards (or belongs to an older generation)
    is dropped on entry.
    """

    def __init__(self, scheduler: Scheduler, name: str = "run") -> None:
        self.scheduler = scheduler
        self.group = TimerGroup(name)
        self.generation = 0
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> int:
        """Start a new generation. Returns its number."""
        if self._open:
            self.close()
        self.generation += 1
        self._open = True
        return self.generation

    def close(self) -> int:
        """Cancel everything armed in this scope. Returns how many were live."""
        self._open = False
        return self.group.cancel_all()

    def _guard(self, callback: Callable[..., None]) -> Callable[..., None]:
        generation = self.generation

        def guarded(*args: Any) -> None:
            if self._open and self.generation == generation:
                callback(*args)

        return guarded

    def call_later(self, delay_ms: float, callback: Callable[[], None], name: str = "") -> TimerHandle:
        return self.group.add(self.scheduler.call_later(delay_ms, self._guard(callback), name))

    def call_every(self, interval_ms: Interval, callback: Callable[[], None], name: str = "") -> TimerHandle:
        return self.group.add(self.scheduler.call_every(interval_ms, self._guard(callback), name))

    def request_frames(self, callback: Callable[[float], None], name: str = "frames") -> TimerHandle:
        return self.group.add(self.scheduler.request_frames(self._guard(callback), name))

    def now(self) -> float:
        return self.scheduler.now()
