"""
Timed power-up effects.

slowTime and shield are "armed until a deadline"; the deadline is kept
both as a scheduled expiry callback and as a timestamp, and the timestamp
is re-checked whenever the effect is read, so an effect can never outlive
its window even if the expiry callback has not run yet.
"""

from typing import Optional
import logging

from dodgeball.core.events import EventBus, EventType
from dodgeball.core.scheduler import RunScope, TimerHandle
from dodgeball.game.store import EntityStore, PowerUpType

logger = logging.getLogger(__name__)


class EffectSystem:
    """Activates, expires and consumes power-up effects on the store."""

    SLOW_TIME_DURATION_MS = 5000
    SHIELD_DURATION_MS = 10000

    def __init__(
        self,
        store: EntityStore,
        scope: RunScope,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self.store = store
        self.scope = scope
        self.event_bus = event_bus

        self._slow_timer: Optional[TimerHandle] = None
        self._shield_timer: Optional[TimerHandle] = None
        self._slow_deadline: Optional[float] = None
        self._shield_deadline: Optional[float] = None

    # Remaining time, for HUD countdowns
    def slow_time_remaining_ms(self) -> float:
        if self._slow_deadline is None or not self.store.active_slow_time:
            return 0.0
        return max(0.0, self._slow_deadline - self.scope.now())

    def shield_remaining_ms(self) -> float:
        if self._shield_deadline is None or not self.store.active_shield:
            return 0.0
        return max(0.0, self._shield_deadline - self.scope.now())

    def apply(self, kind: PowerUpType) -> None:
        """Apply the effect of a collected power-up."""
        if kind == PowerUpType.SLOW_TIME:
            self.activate_slow_time()
        elif kind == PowerUpType.SHIELD:
            self.activate_shield()
        elif kind == PowerUpType.EXTRA_LIFE:
            self.store.add_extra_life()
            logger.debug(f"Extra life banked ({self.store.extra_lives})")
        else:
            raise ValueError(f"Unknown power-up type: {kind}")

    def activate_slow_time(self) -> None:
        """Halve fall speed and tick rate for 5s. Re-collecting restarts the window."""
        self._cancel(self._slow_timer)
        self.store.activate_slow_time()
        self._slow_deadline = self.scope.now() + self.SLOW_TIME_DURATION_MS
        self._slow_timer = self.scope.call_later(
            self.SLOW_TIME_DURATION_MS, self._expire_slow_time, name="slow_time_expiry"
        )
        logger.debug("Slow-time activated")

    def activate_shield(self) -> None:
        """Block the next collision, or lapse after 10s."""
        self._cancel(self._shield_timer)
        self.store.activate_shield()
        self._shield_deadline = self.scope.now() + self.SHIELD_DURATION_MS
        self._shield_timer = self.scope.call_later(
            self.SHIELD_DURATION_MS, self._expire_shield, name="shield_expiry"
        )
        logger.debug("Shield activated")

    def consume_shield(self) -> bool:
        """
        Spend the shield on a hit.

        Returns False if no live shield was available. Consumption
        cancels the pending expiry so it cannot touch a later shield.
        """
        self.refresh()
        if not self.store.active_shield:
            return False
        self._cancel(self._shield_timer)
        self._shield_timer = None
        self._shield_deadline = None
        self.store.clear_shield()
        logger.debug("Shield consumed")
        return True

    def refresh(self) -> None:
        """Expire any effect whose deadline has already passed."""
        now = self.scope.now()
        if self.store.active_slow_time and self._slow_deadline is not None and now >= self._slow_deadline:
            self._expire_slow_time()
        if self.store.active_shield and self._shield_deadline is not None and now >= self._shield_deadline:
            self._expire_shield()

    def reset(self) -> None:
        """Drop all timers and deadlines (store flags are reset by the store)."""
        self._cancel(self._slow_timer)
        self._cancel(self._shield_timer)
        self._slow_timer = None
        self._shield_timer = None
        self._slow_deadline = None
        self._shield_deadline = None

    def _expire_slow_time(self) -> None:
        self._cancel(self._slow_timer)
        self._slow_timer = None
        self._slow_deadline = None
        if self.store.active_slow_time:
            self.store.clear_slow_time()
            logger.debug("Slow-time expired")
            self._emit_expired(PowerUpType.SLOW_TIME)

    def _expire_shield(self) -> None:
        self._cancel(self._shield_timer)
        self._shield_timer = None
        self._shield_deadline = None
        if self.store.active_shield:
            self.store.clear_shield()
            logger.debug("Shield expired")
            self._emit_expired(PowerUpType.SHIELD)

    def _emit_expired(self, kind: PowerUpType) -> None:
        if self.event_bus:
            self.event_bus.publish(EventType.EFFECT_EXPIRED, source="effects", effect=kind.value)

    @staticmethod
    def _cancel(handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()
