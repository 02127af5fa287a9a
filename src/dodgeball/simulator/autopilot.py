"""
Autopilot - a simple bot that steers the ball for headless runs.

It is registered as a renderer, so it sees the same snapshot a window
would draw and answers with directional input for the next tick.
"""

from typing import Optional
import logging

from dodgeball.core.scheduler import VirtualScheduler
from dodgeball.core.state import Phase
from dodgeball.game.controller import GameController
from dodgeball.game.store import Obstacle, Snapshot

logger = logging.getLogger(__name__)


class Autopilot:
    """Dodges the nearest threatening obstacle, otherwise drifts to power-ups."""

    LOOKAHEAD = 220
    SAFETY_MARGIN = 12
    DEADZONE = 4

    def __init__(self, controller: GameController) -> None:
        self.controller = controller
        self.decisions = 0
        self._remove = controller.add_renderer(self.on_snapshot)

    def detach(self) -> None:
        self._remove()

    def on_snapshot(self, snapshot: Snapshot) -> None:
        target = self.choose_target(snapshot)
        x = snapshot.ball.position
        if target is None or abs(target - x) <= self.DEADZONE:
            self.controller.set_input(False, False)
        else:
            self.controller.set_input(target < x, target > x)
        self.decisions += 1

    def choose_target(self, snapshot: Snapshot) -> Optional[float]:
        ball = snapshot.ball
        threat = self._nearest_threat(snapshot)
        if threat is not None:
            left_gap = threat.x - ball.radius - self.SAFETY_MARGIN
            right_gap = threat.x + threat.width + ball.radius + self.SAFETY_MARGIN
            left_ok = left_gap >= ball.radius
            right_ok = right_gap <= snapshot.width - ball.radius
            if left_ok and (not right_ok or ball.position - left_gap <= right_gap - ball.position):
                return left_gap
            if right_ok:
                return right_gap
            return None

        pending = [p for p in snapshot.power_ups if not p.collected]
        if pending:
            return min(pending, key=lambda p: snapshot.ball_y - p.y).x
        return snapshot.width / 2

    def _nearest_threat(self, snapshot: Snapshot) -> Optional[Obstacle]:
        ball = snapshot.ball
        lo = ball.position - ball.radius - self.SAFETY_MARGIN
        hi = ball.position + ball.radius + self.SAFETY_MARGIN
        threats = [
            o for o in snapshot.obstacles
            if not o.passed
            and snapshot.ball_y - o.bottom < self.LOOKAHEAD
            and o.y <= snapshot.ball_y + ball.radius
            and o.x <= hi and o.right >= lo
        ]
        if not threats:
            return None
        return max(threats, key=lambda o: o.y)


def run_headless(
    controller: GameController,
    scheduler: VirtualScheduler,
    seconds: float,
    step_ms: Optional[float] = None,
) -> int:
    """
    Play one run on a virtual clock with the autopilot.

    Stops when the run ends or ``seconds`` of game time have passed.
    Returns the score reached.
    """
    pilot = Autopilot(controller)
    step = step_ms or scheduler.frame_interval_ms
    if controller.phase != Phase.READY:
        controller.restart()
    controller.start()

    elapsed = 0.0
    limit = seconds * 1000.0
    try:
        while elapsed < limit and controller.phase == Phase.PLAYING:
            scheduler.advance(step)
            elapsed += step
    finally:
        pilot.detach()

    score = controller.final_score if controller.final_score is not None else controller.store.score
    logger.info(
        f"Headless run finished after {elapsed / 1000:.1f}s: score {score} "
        f"({controller.phase.name}, {pilot.decisions} decisions)"
    )
    return score
