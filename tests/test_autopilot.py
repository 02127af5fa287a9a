import random

from dodgeball.core.scheduler import VirtualScheduler
from dodgeball.core.state import Phase
from dodgeball.game.controller import GameController
from dodgeball.game.store import Obstacle
from dodgeball.simulator.autopilot import Autopilot, run_headless


def make_controller(seed=3):
    scheduler = VirtualScheduler(frame_interval_ms=10)
    controller = GameController(scheduler, rng=random.Random(seed), physics_interval_ms=10)
    return controller, scheduler


def test_steers_away_from_threat():
    controller, _ = make_controller()
    pilot = Autopilot(controller)
    controller.store.set_obstacles([Obstacle(x=360, y=450, width=60)])

    pilot.on_snapshot(controller.snapshot())

    assert controller.controls.move_right
    assert not controller.controls.move_left


def test_drifts_to_centre_when_clear():
    controller, _ = make_controller()
    pilot = Autopilot(controller)
    controller.store.set_ball_position(100)

    pilot.on_snapshot(controller.snapshot())

    assert controller.controls.move_right
    pilot.detach()


def test_headless_run_reports_score():
    controller, scheduler = make_controller()

    score = run_headless(controller, scheduler, seconds=20)

    assert score >= 0
    assert score % 10 == 0
    assert controller.phase in (Phase.PLAYING, Phase.ENDED)
    assert scheduler.now() <= 20000
    assert controller._renderers == []


def test_headless_run_restarts_a_finished_controller():
    controller, scheduler = make_controller()
    controller.start()
    controller.end()

    run_headless(controller, scheduler, seconds=1)

    assert controller.frames.ticks > 0
