"""
Event bus for dodgeball.

The simulation publishes what happened (dodges, hits, pickups, phase
changes, game over); collaborators such as the score history, the window
HUD and the music subscribe. The core never learns who is listening.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Deque, Dict, List
import logging
import time

logger = logging.getLogger(__name__)


class EventType(Enum):
    # Run lifecycle
    PHASE_CHANGED = auto()
    GAME_STARTED = auto()
    GAME_OVER = auto()          # data: score, difficulty

    # Inside a tick
    OBSTACLE_DODGED = auto()    # data: score
    COLLISION = auto()          # data: score (fatal hit)
    HIT_ABSORBED = auto()       # data: by ("shield" | "extra_life")
    POWERUP_COLLECTED = auto()  # data: type
    EFFECT_EXPIRED = auto()     # data: effect
    DIFFICULTY_ESCALATED = auto()


@dataclass
class Event:
    """
    One published notification.

    Attributes:
        type: EventType member, or a plain string for ad-hoc events
        data: Payload, keyed by field name
        source: Which component published it
        timestamp: Wall-clock creation time
    """
    type: EventType | str
    data: Dict[str, Any] = field(default_factory=dict)
    source: str = "core"
    timestamp: float = field(default_factory=time.time)


Handler = Callable[[Event], None]


class EventBus:
    """
    Synchronous pub/sub.

    Handlers run inline, on the publishing call and the same loop as the
    simulation, in subscription order. A handler that raises is logged and
    the remaining handlers still run.
    """

    def __init__(self, history_limit: int = 100) -> None:
        self._by_type: Dict[EventType | str, List[Handler]] = {}
        self._wildcard: List[Handler] = []
        self._history: Deque[Event] = deque(maxlen=max(1, history_limit))

    def subscribe(self, event_type: EventType | str, handler: Handler) -> Callable[[], None]:
        """Listen for one event type. Returns a function that undoes it."""
        bucket = self._by_type.setdefault(event_type, [])
        bucket.append(handler)
        return lambda: self._discard(bucket, handler)

    def subscribe_all(self, handler: Handler) -> Callable[[], None]:
        """Listen for everything. Returns a function that undoes it."""
        self._wildcard.append(handler)
        return lambda: self._discard(self._wildcard, handler)

    def emit(self, event: Event) -> None:
        self._history.append(event)
        for handler in self._by_type.get(event.type, []) + self._wildcard:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Handler for {event.type} failed: {e}")

    def publish(self, event_type: EventType | str, source: str = "core", **data: Any) -> Event:
        """Build and emit an event in one call."""
        event = Event(event_type, data=data, source=source)
        self.emit(event)
        return event

    def get_history(self, event_type: EventType | str | None = None, limit: int = 10) -> List[Event]:
        """Most recent events, oldest first, optionally of one type."""
        events = [e for e in self._history if event_type is None or e.type == event_type]
        return events[-limit:]

    def clear_history(self) -> None:
        self._history.clear()

    @staticmethod
    def _discard(handlers: List[Handler], handler: Handler) -> None:
        if handler in handlers:
            handlers.remove(handler)
