"""
Game controller - owns one simulation context and its run lifecycle.

Lifecycle:
    1. start()   - READY -> PLAYING, arms frame ticks and spawners
    2. end()     - PLAYING -> ENDED, cancels the run, hands the score outward
    3. restart() - ENDED (or PLAYING) -> READY, cancels the run, rebuilds the store
"""

from typing import Callable, List, Optional
import logging
import random

from dodgeball.audio.base import AudioSink, SilentAudio
from dodgeball.core.events import EventBus, Event, EventType
from dodgeball.core.scheduler import RunScope, Scheduler
from dodgeball.core.state import Phase, PhaseController
from dodgeball.game.effects import EffectSystem
from dodgeball.game.engine import CollisionEngine, InputState, TickResult
from dodgeball.game.frames import FrameScheduler
from dodgeball.game.spawner import Spawner
from dodgeball.game.store import Difficulty, EntityStore, Snapshot

logger = logging.getLogger(__name__)

Renderer = Callable[[Snapshot], None]


class GameController:
    """
    Wires the store, effects, spawner, engine and frame scheduler together.

    All run-scoped timers go through one ``RunScope``; closing it is the
    single place where a run's callbacks are cancelled.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        width: float = 800,
        height: float = 600,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        audio: Optional[AudioSink] = None,
        event_bus: Optional[EventBus] = None,
        rng: Optional[random.Random] = None,
        physics_interval_ms: float = FrameScheduler.TARGET_INTERVAL_MS,
    ) -> None:
        self.scheduler = scheduler
        self.event_bus = event_bus or EventBus()
        self.audio = audio or SilentAudio()
        self.controls = InputState()
        self.last_result: Optional[TickResult] = None
        self.final_score: Optional[int] = None
        self._renderers: List[Renderer] = []

        self.phase_controller = PhaseController(Phase.READY)
        self.phase_controller.add_listener(self._on_phase_changed)

        self.scope = RunScope(scheduler, name="run")
        self.store = EntityStore(width=width, height=height, difficulty=difficulty)
        self.effects = EffectSystem(self.store, self.scope, self.event_bus)
        self.spawner = Spawner(self.store, self.scope, rng)
        self.engine = CollisionEngine(
            self.store,
            self.phase_controller,
            self.effects,
            self.audio,
            on_game_over=self.end,
            event_bus=self.event_bus,
        )
        self.frames = FrameScheduler(
            self.scope,
            tick=self._tick,
            draw=self._draw,
            slowed=lambda: self.store.active_slow_time,
            interval_ms=physics_interval_ms,
        )

        logger.info(f"GameController ready ({width}x{height}, {self.store.difficulty_level.value})")

    @property
    def phase(self) -> Phase:
        return self.phase_controller.phase

    # ------------------------------------------------------------- controls

    def start(self) -> bool:
        """READY -> PLAYING."""
        if not self.phase_controller.can_transition(Phase.PLAYING):
            logger.warning(f"Cannot start from {self.phase.name}")
            return False

        self.final_score = None
        generation = self.scope.open()
        self.phase_controller.transition(Phase.PLAYING)
        self.frames.start()
        self.spawner.arm()

        self.event_bus.publish(
            EventType.GAME_STARTED,
            source="controller",
            run=generation,
            difficulty=self.store.difficulty_level.value,
        )
        return True

    def end(self) -> bool:
        """PLAYING -> ENDED. Safe to call more than once; only the first counts."""
        if not self.phase_controller.can_transition(Phase.ENDED):
            return False

        self._teardown_run()
        self.phase_controller.transition(Phase.ENDED)

        self.final_score = self.store.score
        logger.info(f"Game over - final score {self.final_score}")
        self.event_bus.publish(
            EventType.GAME_OVER,
            source="controller",
            score=self.final_score,
            difficulty=self.store.difficulty_level.value,
        )
        return True

    def restart(self) -> bool:
        """ENDED/PLAYING -> READY with a freshly rebuilt store."""
        if not self.phase_controller.can_transition(Phase.READY):
            logger.warning(f"Cannot restart from {self.phase.name}")
            return False

        self._teardown_run()
        self.store.reset_game()
        self.controls = InputState()
        self.phase_controller.transition(Phase.READY)
        return True

    def set_input(self, move_left: bool, move_right: bool) -> None:
        self.controls = InputState(move_left=move_left, move_right=move_right)

    def set_difficulty(self, level: Difficulty | str) -> bool:
        """Choose a difficulty. Only allowed on the ready screen."""
        if self.phase != Phase.READY:
            logger.warning(f"Difficulty can only change while READY (now {self.phase.name})")
            return False
        self.store.reset_game(difficulty=level)
        logger.info(f"Difficulty set to {self.store.difficulty_level.value}")
        return True

    def add_renderer(self, renderer: Renderer) -> Callable[[], None]:
        """Register a per-frame draw target. Returns a remove function."""
        self._renderers.append(renderer)

        def remove() -> None:
            if renderer in self._renderers:
                self._renderers.remove(renderer)

        return remove

    def snapshot(self) -> Snapshot:
        return self.store.snapshot()

    # -------------------------------------------------------------- internals

    def _teardown_run(self) -> None:
        cancelled = self.scope.close()
        self.frames.stop()
        self.spawner.disarm()
        self.effects.reset()
        logger.debug(f"Run torn down ({cancelled} timers cancelled)")

    def _tick(self) -> None:
        self.last_result = self.engine.tick(self.controls)

    def _draw(self) -> None:
        if not self._renderers:
            return
        snapshot = self.store.snapshot()
        for renderer in list(self._renderers):
            try:
                renderer(snapshot)
            except Exception as e:
                logger.error(f"Error in renderer: {e}")

    def _on_phase_changed(self, old: Phase, new: Phase) -> None:
        self.event_bus.emit(Event(
            EventType.PHASE_CHANGED,
            data={"from": old.name, "to": new.name},
            source="controller",
        ))
