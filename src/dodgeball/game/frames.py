"""Frame-driven tick scheduling, decoupled from the display refresh rate."""

from typing import Callable, Optional
import logging

from dodgeball.core.scheduler import RunScope, TimerHandle

logger = logging.getLogger(__name__)


class FrameScheduler:
    """
    Runs at most one physics tick per display frame.

    A tick fires when at least one target interval has passed since the
    previous tick; the interval doubles while ``slowed()`` is true. The draw
    callback runs on every frame regardless, after the tick if there was one.
    """

    TARGET_INTERVAL_MS = 1000.0 / 60
    # Frame timestamps are floats; without slack a 60Hz display against a
    # 60Hz target drops every other tick on rounding.
    TOLERANCE_MS = 1e-6

    def __init__(
        self,
        scope: RunScope,
        tick: Callable[[], None],
        draw: Optional[Callable[[], None]] = None,
        slowed: Callable[[], bool] = lambda: False,
        interval_ms: float = TARGET_INTERVAL_MS,
    ) -> None:
        if interval_ms <= 0:
            raise ValueError(f"tick interval must be positive, got {interval_ms}")
        self.scope = scope
        self.tick = tick
        self.draw = draw
        self.slowed = slowed
        self.interval_ms = interval_ms

        self.ticks = 0
        self.frames = 0
        self._last_tick: Optional[float] = None
        self._handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None and self._handle.active

    def current_interval_ms(self) -> float:
        return self.interval_ms * 2 if self.slowed() else self.interval_ms

    def start(self) -> None:
        self.stop()
        self.ticks = 0
        self.frames = 0
        self._last_tick = None
        self._handle = self.scope.request_frames(self.on_frame, name="frame_tick")

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def on_frame(self, timestamp_ms: float) -> None:
        self.frames += 1
        if (self._last_tick is None
                or timestamp_ms - self._last_tick >= self.current_interval_ms() - self.TOLERANCE_MS):
            self._last_tick = timestamp_ms
            self.ticks += 1
            self.tick()
        if self.draw is not None:
            self.draw()
