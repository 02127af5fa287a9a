"""
Desktop window for dodgeball using pygame.

Hosts one GameController on the asyncio loop: keyboard input goes in,
snapshots come out and are drawn with the numpy field renderer.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass

import pygame

from dodgeball.audio.engine import AudioEngine
from dodgeball.core.events import Event, EventType
from dodgeball.core.state import Phase
from dodgeball.game.controller import GameController
from dodgeball.game.store import Difficulty, Snapshot
from dodgeball.graphics.renderer import FieldRenderer
from dodgeball.utils.score_history import ScoreHistory

logger = logging.getLogger(__name__)


@dataclass
class WindowConfig:
    """Simulator window configuration."""
    title: str = "DodgeBall"
    fullscreen: bool = False
    fps: int = 60
    scale: int = 1

    text_color: tuple[int, int, int] = (230, 230, 230)
    accent_color: tuple[int, int, int] = (255, 77, 77)
    dim_color: tuple[int, int, int] = (150, 150, 160)


DIFFICULTY_KEYS = {
    pygame.K_1: Difficulty.EASY,
    pygame.K_2: Difficulty.MEDIUM,
    pygame.K_3: Difficulty.HARD,
}

LEVEL_COLORS = {
    logging.ERROR: (255, 100, 100),
    logging.WARNING: (255, 200, 100),
    logging.INFO: (150, 200, 150),
}


class LogCapture(logging.Handler):
    """Keeps the last few log records for the in-window log panel."""

    def __init__(self, capacity: int = 20) -> None:
        super().__init__()
        self.records: deque[tuple[int, str]] = deque(maxlen=capacity)
        self.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append((record.levelno, self.format(record)))


class SimulatorWindow:
    """
    Playable window around a GameController.

    Keyboard Mapping:
        LEFT / A: Move left
        RIGHT / D: Move right
        SPACE / ENTER: Start, or back to the ready screen after game over
        1 / 2 / 3: Easy / medium / hard (ready screen only)
        M: Mute
        F1: Toggle log viewer
        ESC: Exit
    """

    def __init__(
        self,
        controller: GameController,
        config: WindowConfig | None = None,
        audio: AudioEngine | None = None,
        history: ScoreHistory | None = None,
    ) -> None:
        self.controller = controller
        self.config = config or WindowConfig()
        self.audio = audio
        self.history = history

        self.renderer = FieldRenderer(int(controller.store.width), int(controller.store.height))
        self._latest: Snapshot | None = None
        self._held_left = False
        self._held_right = False

        self._screen: pygame.Surface | None = None
        self._clock: pygame.time.Clock | None = None
        self._running = False
        self._frame_count = 0
        self._font: pygame.font.Font | None = None
        self._big_font: pygame.font.Font | None = None
        self._small_font: pygame.font.Font | None = None

        self._show_log = False
        self.log_capture = LogCapture()
        logging.getLogger().addHandler(self.log_capture)

        self._remove_renderer = controller.add_renderer(self._on_snapshot)
        self._unsubscribers = [
            controller.event_bus.subscribe(EventType.GAME_STARTED, self._on_game_started),
            controller.event_bus.subscribe(EventType.GAME_OVER, self._on_game_over),
        ]

        logger.info("SimulatorWindow created")

    @property
    def size(self) -> tuple[int, int]:
        return (
            int(self.controller.store.width) * self.config.scale,
            int(self.controller.store.height) * self.config.scale,
        )

    def _init_pygame(self) -> None:
        """Initialize pygame and create window."""
        pygame.init()
        pygame.display.set_caption(self.config.title)

        flags = pygame.DOUBLEBUF
        if self.config.fullscreen:
            flags |= pygame.FULLSCREEN
        self._screen = pygame.display.set_mode(self.size, flags)
        self._clock = pygame.time.Clock()

        pygame.font.init()
        self._font = pygame.font.SysFont(None, 28)
        self._big_font = pygame.font.SysFont(None, 64)
        self._small_font = pygame.font.SysFont(None, 18)

        logger.info(f"Pygame initialized: {self.size[0]}x{self.size[1]}")

    # ---------------------------------------------------------------- input

    def _handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False
            elif event.type == pygame.KEYDOWN:
                self._handle_keydown(event)
            elif event.type == pygame.KEYUP:
                self._handle_keyup(event)

    def _handle_keydown(self, event: pygame.event.Event) -> None:
        key = event.key

        if key == pygame.K_ESCAPE:
            self._running = False
        elif key == pygame.K_F1:
            self._show_log = not self._show_log
        elif key == pygame.K_m:
            if self.audio:
                muted = self.audio.toggle_mute()
                logger.info(f"Audio {'muted' if muted else 'unmuted'}")
        elif key in (pygame.K_LEFT, pygame.K_a):
            self._held_left = True
        elif key in (pygame.K_RIGHT, pygame.K_d):
            self._held_right = True
        elif key in (pygame.K_SPACE, pygame.K_RETURN):
            self._on_confirm()
        elif key in DIFFICULTY_KEYS:
            self.controller.set_difficulty(DIFFICULTY_KEYS[key])

        self._push_input()

    def _handle_keyup(self, event: pygame.event.Event) -> None:
        key = event.key
        if key in (pygame.K_LEFT, pygame.K_a):
            self._held_left = False
        elif key in (pygame.K_RIGHT, pygame.K_d):
            self._held_right = False
        self._push_input()

    def _on_confirm(self) -> None:
        phase = self.controller.phase
        if phase == Phase.READY:
            self.controller.start()
        elif phase == Phase.ENDED:
            self.controller.restart()

    def _push_input(self) -> None:
        self.controller.set_input(self._held_left, self._held_right)

    # --------------------------------------------------------------- events

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        self._latest = snapshot

    def _on_game_started(self, event: Event) -> None:
        if self.audio:
            self.audio.reset_throttle()
            self.audio.play_music()

    def _on_game_over(self, event: Event) -> None:
        if self.audio:
            self.audio.stop_music()

    # -------------------------------------------------------------- drawing

    def _render(self) -> None:
        if not self._screen:
            return

        if self.controller.phase != Phase.PLAYING or self._latest is None:
            self._latest = self.controller.snapshot()
        buffer = self.renderer.render(self._latest)

        surface = pygame.surfarray.make_surface(buffer.swapaxes(0, 1))
        if self.config.scale != 1:
            surface = pygame.transform.scale(surface, self.size)
        self._screen.blit(surface, (0, 0))

        self._render_hud(self._latest)
        phase = self.controller.phase
        if phase == Phase.READY:
            self._render_ready()
        elif phase == Phase.ENDED:
            self._render_game_over()
        if self._show_log:
            self._render_log_panel()

        pygame.display.flip()

    def _text(self, font: pygame.font.Font | None, text: str, color, center=None, topleft=None) -> None:
        if not font or not self._screen:
            return
        surf = font.render(text, True, color)
        rect = surf.get_rect()
        if center is not None:
            rect.center = center
        elif topleft is not None:
            rect.topleft = topleft
        self._screen.blit(surf, rect)

    def _render_hud(self, snapshot: Snapshot) -> None:
        c = self.config
        self._text(self._font, f"Score: {snapshot.score}", c.text_color, topleft=(12, 10))
        self._text(self._font, f"Lives: {snapshot.extra_lives}", c.text_color, topleft=(12, 36))

        effects = self.controller.effects
        y = 10
        if snapshot.active_shield:
            secs = effects.shield_remaining_ms() / 1000
            self._text(self._font, f"Shield {secs:.1f}s", (255, 215, 64), topleft=(self.size[0] - 160, y))
            y += 26
        if snapshot.active_slow_time:
            secs = effects.slow_time_remaining_ms() / 1000
            self._text(self._font, f"Slow {secs:.1f}s", (64, 200, 255), topleft=(self.size[0] - 160, y))

    def _render_ready(self) -> None:
        c = self.config
        cx, cy = self.size[0] // 2, self.size[1] // 2
        level = self.controller.store.difficulty_level.value
        self._text(self._big_font, "DODGEBALL", c.accent_color, center=(cx, cy - 60))
        self._text(self._font, "Press SPACE or ENTER to start", c.text_color, center=(cx, cy))
        self._text(self._font, f"Difficulty: {level}  (1/2/3)", c.dim_color, center=(cx, cy + 32))
        if self.history and self.history.high_score:
            self._text(self._font, f"High score: {self.history.high_score}", c.dim_color, center=(cx, cy + 64))

    def _render_game_over(self) -> None:
        c = self.config
        cx, cy = self.size[0] // 2, self.size[1] // 2
        score = self.controller.final_score or 0
        self._text(self._big_font, "GAME OVER", c.accent_color, center=(cx, cy - 60))
        self._text(self._font, f"Score: {score}", c.text_color, center=(cx, cy))
        if self.history:
            self._text(self._font, f"Best: {self.history.high_score}", c.dim_color, center=(cx, cy + 32))
        self._text(self._font, "SPACE for the ready screen", c.dim_color, center=(cx, cy + 64))

    def _render_log_panel(self) -> None:
        """Render the log viewer panel."""
        if not self._small_font or not self._screen:
            return

        rect = pygame.Rect(10, 70, min(420, self.size[0] - 20), self.size[1] - 90)
        surf = pygame.Surface((rect.width, rect.height), pygame.SRCALPHA)
        surf.fill((20, 25, 35, 230))
        self._screen.blit(surf, rect.topleft)
        pygame.draw.rect(self._screen, (60, 80, 100), rect, 1, border_radius=5)

        y = rect.y + 8
        for level, line in self.log_capture.records:
            if y > rect.bottom - 10:
                break
            color = LEVEL_COLORS.get(min(level, logging.ERROR), self.config.dim_color)
            if len(line) > 60:
                line = line[:57] + "..."
            self._text(self._small_font, line, color, topleft=(rect.x + 8, y))
            y += 14

    # ----------------------------------------------------------------- loop

    async def run(self) -> None:
        """Main window loop. Controller timers fire while we yield."""
        self._init_pygame()
        self._running = True
        logger.info("Simulator started")

        try:
            while self._running:
                self._handle_events()
                self._render()

                if self._clock:
                    self._clock.tick(self.config.fps)
                self._frame_count += 1

                await asyncio.sleep(0)
        finally:
            self._cleanup()

    def _cleanup(self) -> None:
        """Stop the run and release pygame."""
        if self.controller.phase == Phase.PLAYING:
            self.controller.restart()
        self._remove_renderer()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        logging.getLogger().removeHandler(self.log_capture)
        pygame.quit()
        logger.info("Simulator stopped")

    def stop(self) -> None:
        self._running = False
