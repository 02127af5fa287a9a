"""
Per-tick physics, collision and scoring.

One call to ``CollisionEngine.tick`` is one physics step:

    1. move the ball from the sampled input
    2. advance power-ups, collect the ones touching the ball
    3. advance obstacles, resolve hits and dodges, escalate difficulty
    4. prune entities that are off the field or collected
"""

from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional
import logging
import math

from dodgeball.audio.base import AudioSink
from dodgeball.core.events import EventBus, EventType
from dodgeball.core.state import PhaseController
from dodgeball.game.effects import EffectSystem
from dodgeball.game.store import EntityStore, Obstacle, ObstacleType, PowerUp

logger = logging.getLogger(__name__)


@dataclass
class InputState:
    """Directional input sampled once per tick."""

    move_left: bool = False
    move_right: bool = False


@dataclass
class TickResult:
    """What happened during one tick."""

    dodged: int = 0
    collected: List[str] = field(default_factory=list)
    shield_absorbed: int = 0
    life_absorbed: int = 0
    game_over: bool = False


class CollisionEngine:
    """Moves entities and resolves collisions against the store."""

    SCORE_PER_DODGE = 10
    ESCALATION_STEP = 50
    COUNT_MILESTONES = (500, 1000)
    PRUNE_MARGIN = 50

    def __init__(
        self,
        store: EntityStore,
        phase: PhaseController,
        effects: EffectSystem,
        audio: AudioSink,
        on_game_over: Callable[[], None],
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self.store = store
        self.phase = phase
        self.effects = effects
        self.audio = audio
        self.on_game_over = on_game_over
        self.event_bus = event_bus

    def tick(self, controls: InputState) -> TickResult:
        result = TickResult()
        if not self.phase.is_playing:
            return result

        self.effects.refresh()
        self._move_ball(controls)
        self._update_power_ups(result)
        self._update_obstacles(result)
        return result

    # ------------------------------------------------------------------ ball

    def _move_ball(self, controls: InputState) -> None:
        position = self.store.ball_position
        if controls.move_left:
            position -= self.store.ball_speed
        if controls.move_right:
            position += self.store.ball_speed
        if position != self.store.ball_position:
            self.store.set_ball_position(position)

    # ------------------------------------------------------------- power-ups

    def _update_power_ups(self, result: TickResult) -> None:
        speed = self.store.effective_speed
        ball_x = self.store.ball_position
        ball_y = self.store.ball_y
        ball_r = self.store.ball_radius
        limit = self.store.height + self.PRUNE_MARGIN

        updated: List[PowerUp] = []
        for power_up in self.store.power_ups:
            if power_up.collected:
                continue
            moved = replace(power_up, y=power_up.y + speed)
            if math.hypot(ball_x - moved.x, ball_y - moved.y) < ball_r + moved.radius:
                moved.collected = True
                self.effects.apply(moved.type)
                result.collected.append(moved.type.value)
                logger.debug(f"Collected power-up {moved.type.value}")
                self._emit(EventType.POWERUP_COLLECTED, type=moved.type.value)
                continue
            if moved.y > limit:
                continue
            updated.append(moved)

        self.store.set_power_ups(updated)

    # ------------------------------------------------------------- obstacles

    def _update_obstacles(self, result: TickResult) -> None:
        speed = self.store.effective_speed
        width = self.store.width
        ball_x = self.store.ball_position
        ball_y = self.store.ball_y
        ball_r = self.store.ball_radius
        limit = self.store.height + self.PRUNE_MARGIN

        obstacles = self.store.obstacles
        updated: List[Obstacle] = []
        for index, obstacle in enumerate(obstacles):
            moved = replace(obstacle, y=obstacle.y + speed)
            if moved.type == ObstacleType.MOVING:
                self._slide(moved, width)

            if not moved.passed and self._hits(moved, ball_x, ball_y, ball_r):
                if not self._absorb_hit(moved, result):
                    # Run is over; the rest of the field is left where it was.
                    self.store.set_obstacles(updated + [moved] + list(obstacles[index + 1:]))
                    result.game_over = True
                    self.on_game_over()
                    return
            elif not moved.passed and moved.y > ball_y + ball_r:
                moved.passed = True
                self._score_dodge(result)

            if moved.y <= limit:
                updated.append(moved)

        self.store.set_obstacles(updated)

    @staticmethod
    def _slide(obstacle: Obstacle, width: float) -> None:
        x = obstacle.x + obstacle.move_direction * obstacle.move_speed
        max_x = max(0.0, width - obstacle.width)
        if x <= 0:
            x = 0.0
            obstacle.move_direction = 1
        elif x >= max_x:
            x = max_x
            obstacle.move_direction = -1
        obstacle.x = x

    @staticmethod
    def _hits(obstacle: Obstacle, ball_x: float, ball_y: float, ball_r: float) -> bool:
        vertical = obstacle.y + obstacle.height >= ball_y - ball_r and obstacle.y <= ball_y + ball_r
        horizontal = obstacle.x <= ball_x + ball_r and obstacle.x + obstacle.width >= ball_x - ball_r
        return vertical and horizontal

    def _absorb_hit(self, obstacle: Obstacle, result: TickResult) -> bool:
        """Shield first, then a banked life. False means the run ends."""
        self._notify(self.audio.play_hit)

        if self.effects.consume_shield():
            obstacle.passed = True
            result.shield_absorbed += 1
            logger.info("Hit absorbed by shield")
            self._emit(EventType.HIT_ABSORBED, by="shield")
            return True

        if self.store.use_extra_life():
            obstacle.passed = True
            result.life_absorbed += 1
            logger.info(f"Hit absorbed by extra life ({self.store.extra_lives} left)")
            self._emit(EventType.HIT_ABSORBED, by="extra_life", lives=self.store.extra_lives)
            return True

        logger.info(f"Collision - game over at score {self.store.score}")
        self._emit(EventType.COLLISION, score=self.store.score)
        return False

    def _score_dodge(self, result: TickResult) -> None:
        score = self.store.score + self.SCORE_PER_DODGE
        self.store.set_score(score)
        result.dodged += 1
        self._notify(self.audio.play_success)
        self._emit(EventType.OBSTACLE_DODGED, score=score)

        if score % self.ESCALATION_STEP == 0:
            self.store.increase_obstacle_speed()
            self.store.increase_spawn_rate()
            self._emit(
                EventType.DIFFICULTY_ESCALATED,
                score=score,
                speed=self.store.obstacle_speed,
                interval_ms=self.store.obstacle_spawn_interval_ms,
            )
        if score in self.COUNT_MILESTONES:
            self.store.increase_obstacle_count()

    # ---------------------------------------------------------- collaborators

    @staticmethod
    def _notify(hook: Callable[[], None]) -> None:
        try:
            hook()
        except Exception as e:
            logger.error(f"Audio collaborator failed: {e}")

    def _emit(self, event_type: EventType, **data) -> None:
        if self.event_bus:
            self.event_bus.publish(event_type, source="engine", **data)
