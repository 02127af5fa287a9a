"""Simulation engine: store, spawner, collisions, effects and run control."""

from dodgeball.game.store import (
    Ball, Obstacle, PowerUp, GameState, Snapshot, EntityStore,
    Difficulty, ObstacleType, PowerUpType, DIFFICULTY_LEVELS,
)
from dodgeball.game.effects import EffectSystem
from dodgeball.game.spawner import Spawner
from dodgeball.game.engine import CollisionEngine, InputState, TickResult
from dodgeball.game.frames import FrameScheduler
from dodgeball.game.controller import GameController

__all__ = [
    "Ball", "Obstacle", "PowerUp", "GameState", "Snapshot", "EntityStore",
    "Difficulty", "ObstacleType", "PowerUpType", "DIFFICULTY_LEVELS",
    "EffectSystem", "Spawner", "CollisionEngine", "InputState", "TickResult",
    "FrameScheduler", "GameController",
]
