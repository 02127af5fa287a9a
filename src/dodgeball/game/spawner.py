"""
Obstacle and power-up spawning.

Two interval generators append new entities to the store while a run
is playing. Both are armed through the run scope, so they disappear
the moment the run leaves the playing phase.
"""

import logging
import random
from typing import List, Optional

from dodgeball.core.scheduler import RunScope, TimerHandle
from dodgeball.game.store import EntityStore, Obstacle, ObstacleType, PowerUp, PowerUpType

logger = logging.getLogger(__name__)


class Spawner:
    """Time-driven generator of obstacles and power-ups."""

    FIELD_SECTIONS = 4
    PLACEMENT_ATTEMPTS = 15

    SPECIAL_SCORE = 300          # special obstacle types unlock above this score
    SPECIAL_CHANCE = 0.10
    SLOW_TIME_SPAWN_CHANCE = 0.30

    NORMAL_WIDTH = (0.4, 0.8)    # fraction of one section
    WIDE_WIDTH = (1.5, 2.0)
    MOVE_SPEED = (1.0, 3.0)      # px per tick
    OBSTACLE_HEIGHT = 20

    POWER_UP_INTERVAL_MS = 10000
    POWER_UP_MIN_SCORE = 200
    MAX_ACTIVE_POWER_UPS = 2
    POWER_UP_RADIUS = 15

    def __init__(
        self,
        store: EntityStore,
        scope: RunScope,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.scope = scope
        self.rng = rng or random.Random()

        self._obstacle_timer: Optional[TimerHandle] = None
        self._power_up_timer: Optional[TimerHandle] = None

    @property
    def section_width(self) -> float:
        return self.store.width / self.FIELD_SECTIONS

    @property
    def armed(self) -> bool:
        return any(
            t is not None and t.active
            for t in (self._obstacle_timer, self._power_up_timer)
        )

    def arm(self) -> None:
        """Start both generators. The obstacle period follows the store."""
        self.disarm()
        self._obstacle_timer = self.scope.call_every(
            lambda: self.store.obstacle_spawn_interval_ms,
            self.on_obstacle_interval,
            name="obstacle_spawner",
        )
        self._power_up_timer = self.scope.call_every(
            self.POWER_UP_INTERVAL_MS,
            self.on_power_up_interval,
            name="power_up_spawner",
        )
        logger.debug("Spawners armed")

    def disarm(self) -> None:
        for timer in (self._obstacle_timer, self._power_up_timer):
            if timer is not None:
                timer.cancel()
        self._obstacle_timer = None
        self._power_up_timer = None

    # ------------------------------------------------------------ obstacles

    def on_obstacle_interval(self) -> None:
        """One firing of the obstacle generator."""
        if self.store.active_slow_time and self.rng.random() >= self.SLOW_TIME_SPAWN_CHANCE:
            return
        batch = self.spawn_obstacles(self.store.obstacle_count)
        self.store.add_obstacles(batch)
        logger.debug(f"Spawned {len(batch)} obstacle(s)")

    def spawn_obstacles(self, count: int) -> List[Obstacle]:
        """Build ``count`` obstacles, trying to keep them apart from each other."""
        batch: List[Obstacle] = []
        for _ in range(count):
            kind = self._pick_type()
            width = self._pick_width(kind)
            x = self._place(width, batch)
            obstacle = Obstacle(x=x, y=0, width=width, height=self.OBSTACLE_HEIGHT, type=kind)
            if kind == ObstacleType.MOVING:
                obstacle.move_direction = self.rng.choice((-1, 1))
                obstacle.move_speed = self.rng.uniform(*self.MOVE_SPEED)
            batch.append(obstacle)
        return batch

    def _pick_type(self) -> ObstacleType:
        if self.store.score > self.SPECIAL_SCORE and self.rng.random() < self.SPECIAL_CHANCE:
            return ObstacleType.WIDE if self.rng.random() < 0.5 else ObstacleType.MOVING
        return ObstacleType.NORMAL

    def _pick_width(self, kind: ObstacleType) -> float:
        low, high = self.WIDE_WIDTH if kind == ObstacleType.WIDE else self.NORMAL_WIDTH
        width = self.section_width * self.rng.uniform(low, high)
        return min(width, self.store.width)

    def _place(self, width: float, batch: List[Obstacle]) -> float:
        """
        Random x for an obstacle of ``width``.

        Retries a bounded number of times to avoid overlapping obstacles
        from the same firing; after that the last candidate is used even if
        it overlaps.
        """
        max_x = max(0.0, self.store.width - width)
        x = 0.0
        for _ in range(self.PLACEMENT_ATTEMPTS):
            x = self.rng.uniform(0, max_x)
            if not any(x < other.right and x + width > other.x for other in batch):
                return x
        logger.debug("Obstacle placement exhausted retries; accepting overlap")
        return x

    # ------------------------------------------------------------- power-ups

    def on_power_up_interval(self) -> None:
        """One firing of the power-up generator."""
        if self.store.score < self.POWER_UP_MIN_SCORE:
            return
        if self.store.uncollected_power_ups >= self.MAX_ACTIVE_POWER_UPS:
            return
        power_up = self.spawn_power_up()
        self.store.add_power_up(power_up)
        logger.debug(f"Spawned power-up {power_up.type.value} at x={power_up.x:.0f}")

    def spawn_power_up(self) -> PowerUp:
        radius = self.POWER_UP_RADIUS
        kind = self.rng.choice(list(PowerUpType))
        x = self.rng.uniform(radius, self.store.width - radius)
        return PowerUp(x=x, y=0, type=kind, radius=radius)
