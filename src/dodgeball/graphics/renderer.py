"""Field renderer - draws a store snapshot into an RGB buffer."""

from typing import Dict, Optional

import numpy as np

from dodgeball.game.store import ObstacleType, PowerUpType, Snapshot
from dodgeball.graphics.primitives import (
    Buffer, Color, new_buffer, vertical_gradient, draw_box, draw_disc
)

BACKGROUND_TOP: Color = (0x12, 0x12, 0x12)
BACKGROUND_BOTTOM: Color = (0x30, 0x30, 0x30)
SLOW_TIME_TOP: Color = (0x10, 0x18, 0x28)
SLOW_TIME_BOTTOM: Color = (0x28, 0x34, 0x48)

BALL_COLOR: Color = (0xFF, 0x4D, 0x4D)
OUTLINE_COLOR: Color = (0, 0, 0)
SHIELD_COLOR: Color = (255, 215, 64)

OBSTACLE_COLORS: Dict[ObstacleType, Color] = {
    ObstacleType.NORMAL: (0x4D, 0x79, 0xFF),
    ObstacleType.WIDE: (0x9B, 0x4D, 0xFF),
    ObstacleType.MOVING: (0xFF, 0x9F, 0x1C),
}

POWER_UP_COLORS: Dict[PowerUpType, Color] = {
    PowerUpType.SLOW_TIME: (64, 200, 255),
    PowerUpType.SHIELD: SHIELD_COLOR,
    PowerUpType.EXTRA_LIFE: (80, 220, 120),
}


class FieldRenderer:
    """
    Draws snapshots into a reusable numpy buffer.

    Redraws are skipped when the snapshot version has not changed since
    the previous call.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.buffer: Buffer = new_buffer(width, height)
        self._background = new_buffer(width, height)
        self._slow_background = new_buffer(width, height)
        vertical_gradient(self._background, BACKGROUND_TOP, BACKGROUND_BOTTOM)
        vertical_gradient(self._slow_background, SLOW_TIME_TOP, SLOW_TIME_BOTTOM)
        self._last_version: Optional[int] = None
        self.frames_drawn = 0

    def render(self, snapshot: Snapshot) -> Buffer:
        if snapshot.version == self._last_version:
            return self.buffer
        self._last_version = snapshot.version

        background = self._slow_background if snapshot.active_slow_time else self._background
        np.copyto(self.buffer, background)

        for obstacle in snapshot.obstacles:
            x, y = int(obstacle.x), int(obstacle.y)
            w, h = int(obstacle.width), int(obstacle.height)
            draw_box(self.buffer, x, y, w, h, OBSTACLE_COLORS[obstacle.type], border=OUTLINE_COLOR)

        for power_up in snapshot.power_ups:
            if power_up.collected:
                continue
            cx, cy, r = int(power_up.x), int(power_up.y), int(power_up.radius)
            draw_disc(self.buffer, cx, cy, r, POWER_UP_COLORS[power_up.type], outline=OUTLINE_COLOR)

        ball = snapshot.ball
        bx, by, br = int(ball.position), int(snapshot.ball_y), int(ball.radius)
        draw_disc(self.buffer, bx, by, br, BALL_COLOR, outline=OUTLINE_COLOR)
        if snapshot.active_shield:
            draw_disc(self.buffer, bx, by, br + 6, None, outline=SHIELD_COLOR, ring=3)

        self.frames_drawn += 1
        return self.buffer
