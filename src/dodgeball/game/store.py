"""Entity store - the single authoritative record of a run."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Tuple
import logging
import math

logger = logging.getLogger(__name__)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ObstacleType(str, Enum):
    NORMAL = "normal"
    WIDE = "wide"
    MOVING = "moving"


class PowerUpType(str, Enum):
    SLOW_TIME = "slowTime"
    SHIELD = "shield"
    EXTRA_LIFE = "extraLife"


@dataclass(frozen=True)
class DifficultySettings:
    """Escalation constants for one difficulty level."""

    speed_increase: float
    spawn_rate_decrease: float
    obstacle_base_speed: float


DIFFICULTY_LEVELS = {
    Difficulty.EASY: DifficultySettings(speed_increase=0.2, spawn_rate_decrease=50, obstacle_base_speed=3),
    Difficulty.MEDIUM: DifficultySettings(speed_increase=0.3, spawn_rate_decrease=75, obstacle_base_speed=4),
    Difficulty.HARD: DifficultySettings(speed_increase=0.5, spawn_rate_decrease=100, obstacle_base_speed=5),
}


@dataclass
class Ball:
    """Player marker. Only the horizontal position moves."""

    position: float
    radius: float = 20
    speed: float = 8


@dataclass
class Obstacle:
    """Falling rectangle; (x, y) is the top-left corner."""

    x: float
    y: float
    width: float
    height: float = 20
    passed: bool = False
    type: ObstacleType = ObstacleType.NORMAL
    move_direction: int = 0
    move_speed: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass
class PowerUp:
    """Falling collectible circle centred on (x, y)."""

    x: float
    y: float
    type: PowerUpType
    radius: float = 15
    collected: bool = False


@dataclass
class GameState:
    """Scalar run state: score, difficulty parameters and effect flags."""

    difficulty_level: Difficulty = Difficulty.MEDIUM
    score: int = 0
    obstacle_speed: float = 4
    obstacle_spawn_interval_ms: float = 1800
    obstacle_count: int = 1
    active_slow_time: bool = False
    active_shield: bool = False
    extra_lives: int = 0


@dataclass(frozen=True)
class Snapshot:
    """Read-only copy of the store handed to renderers each frame."""

    width: float
    height: float
    ball: Ball
    ball_y: float
    obstacles: Tuple[Obstacle, ...]
    power_ups: Tuple[PowerUp, ...]
    score: int
    active_shield: bool
    active_slow_time: bool
    extra_lives: int
    difficulty_level: Difficulty
    version: int = 0


class EntityStore:
    """
    Owns the ball, obstacles, power-ups and game state of one run.

    Every setter is a total overwrite and every mutator runs to completion
    before returning. Callers never hold the live lists: ``obstacles`` and
    ``power_ups`` come back as tuples and are replaced wholesale through
    ``set_obstacles`` / ``set_power_ups``.

    ``version`` increments on each committed mutation, so readers can tell
    whether anything changed since their last snapshot.
    """

    DEFAULT_SPAWN_INTERVAL_MS = 1800
    MIN_SPAWN_INTERVAL_MS = 800
    MAX_OBSTACLE_COUNT = 3
    MAX_EXTRA_LIVES = 3
    COUNT_UNLOCK_SCORE = 500
    DIMINISHING_SCORE = 1000
    BALL_MARGIN = 10

    def __init__(
        self,
        width: float = 800,
        height: float = 600,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        ball_radius: float = 20,
        ball_speed: float = 8,
    ) -> None:
        if width <= 2 * ball_radius or height <= 2 * ball_radius:
            raise ValueError(f"field {width}x{height} too small for ball radius {ball_radius}")

        self.width = width
        self.height = height
        self._ball_radius = ball_radius
        self._ball_speed = ball_speed
        self._difficulty = Difficulty(difficulty)
        self._version = 0

        self._ball = Ball(position=width / 2, radius=ball_radius, speed=ball_speed)
        self._obstacles: list[Obstacle] = []
        self._power_ups: list[PowerUp] = []
        self._state = GameState(difficulty_level=self._difficulty)

        self.reset_game()

    # ----------------------------------------------------------------- reads

    @property
    def version(self) -> int:
        return self._version

    @property
    def ball(self) -> Ball:
        return replace(self._ball)

    @property
    def ball_position(self) -> float:
        return self._ball.position

    @property
    def ball_radius(self) -> float:
        return self._ball.radius

    @property
    def ball_speed(self) -> float:
        return self._ball.speed

    @property
    def ball_y(self) -> float:
        """Fixed vertical line the ball travels along."""
        return self.height - self._ball.radius - self.BALL_MARGIN

    @property
    def obstacles(self) -> Tuple[Obstacle, ...]:
        return tuple(self._obstacles)

    @property
    def power_ups(self) -> Tuple[PowerUp, ...]:
        return tuple(self._power_ups)

    @property
    def uncollected_power_ups(self) -> int:
        return sum(1 for p in self._power_ups if not p.collected)

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def difficulty_level(self) -> Difficulty:
        return self._state.difficulty_level

    @property
    def difficulty_settings(self) -> DifficultySettings:
        return DIFFICULTY_LEVELS[self._state.difficulty_level]

    @property
    def obstacle_speed(self) -> float:
        return self._state.obstacle_speed

    @property
    def obstacle_spawn_interval_ms(self) -> float:
        return self._state.obstacle_spawn_interval_ms

    @property
    def obstacle_count(self) -> int:
        return self._state.obstacle_count

    @property
    def active_slow_time(self) -> bool:
        return self._state.active_slow_time

    @property
    def active_shield(self) -> bool:
        return self._state.active_shield

    @property
    def extra_lives(self) -> int:
        return self._state.extra_lives

    @property
    def effective_speed(self) -> float:
        """Downward speed of everything falling, halved under slow-time."""
        speed = self._state.obstacle_speed
        return speed / 2 if self._state.active_slow_time else speed

    def snapshot(self) -> Snapshot:
        return Snapshot(
            width=self.width,
            height=self.height,
            ball=replace(self._ball),
            ball_y=self.ball_y,
            obstacles=tuple(replace(o) for o in self._obstacles),
            power_ups=tuple(replace(p) for p in self._power_ups),
            score=self._state.score,
            active_shield=self._state.active_shield,
            active_slow_time=self._state.active_slow_time,
            extra_lives=self._state.extra_lives,
            difficulty_level=self._state.difficulty_level,
            version=self._version,
        )

    # --------------------------------------------------------------- setters

    def _commit(self) -> None:
        self._version += 1

    def clamp_ball_x(self, position: float) -> float:
        radius = self._ball.radius
        if not math.isfinite(position):
            return self.width / 2
        return max(radius, min(self.width - radius, position))

    def set_ball_position(self, position: float) -> None:
        self._ball.position = self.clamp_ball_x(position)
        self._commit()

    def set_obstacles(self, obstacles: Iterable[Obstacle]) -> None:
        self._obstacles = list(obstacles)
        self._commit()

    def set_power_ups(self, power_ups: Iterable[PowerUp]) -> None:
        self._power_ups = list(power_ups)
        self._commit()

    def add_obstacles(self, obstacles: Iterable[Obstacle]) -> None:
        """Append to the current obstacles (spawner path)."""
        self.set_obstacles(self._obstacles + list(obstacles))

    def add_power_up(self, power_up: PowerUp) -> None:
        self.set_power_ups(self._power_ups + [power_up])

    def set_score(self, score: int) -> None:
        if score < 0:
            raise ValueError(f"score cannot be negative: {score}")
        self._state.score = score
        self._commit()

    # -------------------------------------------------------------- mutators

    def increase_obstacle_speed(self) -> None:
        """Apply the difficulty's speed increment (halved past 1000 points)."""
        increase = self.difficulty_settings.speed_increase
        if self._state.score > self.DIMINISHING_SCORE:
            increase /= 2
        self._state.obstacle_speed += increase
        self._commit()
        logger.debug(f"Obstacle speed -> {self._state.obstacle_speed:.2f}")

    def increase_spawn_rate(self) -> None:
        """Shorten the spawn interval, never below the 800ms floor."""
        decrease = self.difficulty_settings.spawn_rate_decrease
        if self._state.score > self.DIMINISHING_SCORE:
            decrease /= 2
        self._state.obstacle_spawn_interval_ms = max(
            self.MIN_SPAWN_INTERVAL_MS,
            self._state.obstacle_spawn_interval_ms - decrease,
        )
        self._commit()
        logger.debug(f"Spawn interval -> {self._state.obstacle_spawn_interval_ms:.0f}ms")

    def increase_obstacle_count(self) -> None:
        """One more obstacle per firing, from 500 points on, capped at 3."""
        if (self._state.score >= self.COUNT_UNLOCK_SCORE
                and self._state.obstacle_count < self.MAX_OBSTACLE_COUNT):
            self._state.obstacle_count += 1
            self._commit()
            logger.debug(f"Obstacle count -> {self._state.obstacle_count}")

    def activate_slow_time(self) -> None:
        self._state.active_slow_time = True
        self._commit()

    def clear_slow_time(self) -> None:
        self._state.active_slow_time = False
        self._commit()

    def activate_shield(self) -> None:
        self._state.active_shield = True
        self._commit()

    def clear_shield(self) -> None:
        self._state.active_shield = False
        self._commit()

    def add_extra_life(self) -> None:
        self._state.extra_lives = min(self.MAX_EXTRA_LIVES, self._state.extra_lives + 1)
        self._commit()

    def use_extra_life(self) -> bool:
        """Spend a banked life. Returns False, untouched, when none are left."""
        if self._state.extra_lives > 0:
            self._state.extra_lives -= 1
            self._commit()
            return True
        return False

    def reset_game(self, difficulty: Optional[Difficulty | str] = None) -> None:
        """Rebuild every entity and the game state from scratch."""
        if difficulty is not None:
            self._difficulty = Difficulty(difficulty)
        settings = DIFFICULTY_LEVELS[self._difficulty]

        self._ball = Ball(
            position=self.width / 2,
            radius=self._ball_radius,
            speed=self._ball_speed,
        )
        self._obstacles = []
        self._power_ups = []
        self._state = GameState(
            difficulty_level=self._difficulty,
            score=0,
            obstacle_speed=settings.obstacle_base_speed,
            obstacle_spawn_interval_ms=self.DEFAULT_SPAWN_INTERVAL_MS,
            obstacle_count=1,
            active_slow_time=False,
            active_shield=False,
            extra_lives=0,
        )
        self._commit()
        logger.debug(f"Store reset (difficulty={self._difficulty.value})")
