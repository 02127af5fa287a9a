"""
Main entry point for dodgeball.

Reads settings from the environment and launches either the pygame
window or a headless autopilot run on a virtual clock.
"""

import asyncio
import logging
import random
import sys

from dodgeball.config.settings import Settings, get_settings
from dodgeball.core.events import EventBus
from dodgeball.utils.score_history import ScoreHistory


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


def make_rng(settings: Settings) -> random.Random:
    return random.Random(settings.seed)


async def run_simulator(settings: Settings) -> None:
    """Run the game in a pygame window."""
    from dodgeball.audio.engine import AudioEngine
    from dodgeball.core.scheduler import AsyncioScheduler
    from dodgeball.game.controller import GameController
    from dodgeball.simulator.window import SimulatorWindow, WindowConfig

    logger = logging.getLogger(__name__)

    audio = None
    if settings.audio_enabled:
        audio = AudioEngine()
        if not audio.init():
            logger.warning("Audio unavailable, continuing without sound")
            audio = None

    event_bus = EventBus()
    history = ScoreHistory(settings.history_path, settings.history_limit)
    history.attach(event_bus)

    scheduler = AsyncioScheduler(frame_interval_ms=1000.0 / settings.display.fps)
    controller = GameController(
        scheduler,
        width=settings.field.width,
        height=settings.field.height,
        difficulty=settings.difficulty,
        audio=audio,
        event_bus=event_bus,
        rng=make_rng(settings),
    )

    config = WindowConfig(
        title=settings.display.title,
        fullscreen=settings.display.fullscreen,
        fps=settings.display.fps,
        scale=settings.display.scale,
    )
    window = SimulatorWindow(controller, config=config, audio=audio, history=history)

    try:
        await window.run()
    finally:
        history.detach()
        if audio:
            audio.cleanup()


def run_headless(settings: Settings) -> int:
    """Play one autopilot run on a virtual clock. Returns the score."""
    from dodgeball.core.scheduler import VirtualScheduler
    from dodgeball.game.controller import GameController
    from dodgeball.simulator.autopilot import run_headless as autopilot_run

    event_bus = EventBus()
    history = ScoreHistory(settings.history_path, settings.history_limit)
    history.attach(event_bus)

    scheduler = VirtualScheduler()
    controller = GameController(
        scheduler,
        width=settings.field.width,
        height=settings.field.height,
        difficulty=settings.difficulty,
        event_bus=event_bus,
        rng=make_rng(settings),
    )
    try:
        return autopilot_run(controller, scheduler, settings.headless_seconds)
    finally:
        history.detach()


def main() -> None:
    """Main entry point."""
    from dotenv import load_dotenv

    load_dotenv()
    settings = get_settings()
    setup_logging(settings.debug)

    logger = logging.getLogger(__name__)
    logger.info("DodgeBall starting...")

    try:
        if settings.is_simulator:
            logger.info("Running in simulator mode")
            asyncio.run(run_simulator(settings))
        elif settings.is_headless:
            logger.info(f"Running headless for {settings.headless_seconds:.0f}s")
            score = run_headless(settings)
            logger.info(f"Final score: {score}")
        else:
            logger.error(f"Unknown environment: {settings.env}")
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)

    logger.info("DodgeBall stopped")


if __name__ == "__main__":
    main()
