"""Core framework components for dodgeball."""

from .state import Phase, PhaseController
from .events import EventBus, Event, EventType
from .scheduler import (
    Scheduler, AsyncioScheduler, VirtualScheduler,
    TimerHandle, TimerGroup, RunScope,
)

__all__ = [
    "Phase", "PhaseController",
    "EventBus", "Event", "EventType",
    "Scheduler", "AsyncioScheduler", "VirtualScheduler",
    "TimerHandle", "TimerGroup", "RunScope",
]
