import numpy as np
import pytest

from dodgeball.game.store import EntityStore, Obstacle, ObstacleType, PowerUp, PowerUpType
from dodgeball.graphics.primitives import draw_box, draw_disc, new_buffer, vertical_gradient
from dodgeball.graphics.renderer import (
    BALL_COLOR, OBSTACLE_COLORS, POWER_UP_COLORS, SHIELD_COLOR, FieldRenderer,
)


@pytest.fixture
def renderer():
    return FieldRenderer(800, 600)


def pixel(buffer, x, y):
    return tuple(int(c) for c in buffer[y, x])


def test_draws_ball_obstacles_and_power_ups(renderer, store):
    store.set_obstacles([
        Obstacle(x=100, y=100, width=100),
        Obstacle(x=500, y=100, width=100, type=ObstacleType.MOVING, move_direction=1, move_speed=2),
    ])
    store.set_power_ups([PowerUp(x=300, y=300, type=PowerUpType.EXTRA_LIFE)])

    buffer = renderer.render(store.snapshot())

    assert buffer.shape == (600, 800, 3)
    assert pixel(buffer, 400, int(store.ball_y)) == BALL_COLOR
    assert pixel(buffer, 150, 110) == OBSTACLE_COLORS[ObstacleType.NORMAL]
    assert pixel(buffer, 550, 110) == OBSTACLE_COLORS[ObstacleType.MOVING]
    assert pixel(buffer, 300, 300) == POWER_UP_COLORS[PowerUpType.EXTRA_LIFE]


def test_shield_ring_only_when_active(renderer, store):
    y = int(store.ball_y)
    plain = renderer.render(store.snapshot()).copy()
    store.activate_shield()
    shielded = renderer.render(store.snapshot())

    assert pixel(plain, 425, y) != SHIELD_COLOR
    assert pixel(shielded, 425, y) == SHIELD_COLOR


def test_collected_power_ups_not_drawn(renderer, store):
    store.set_power_ups([PowerUp(x=300, y=300, type=PowerUpType.SHIELD, collected=True)])
    buffer = renderer.render(store.snapshot())
    assert pixel(buffer, 300, 300) != POWER_UP_COLORS[PowerUpType.SHIELD]


def test_unchanged_version_skips_redraw(renderer, store):
    snap = store.snapshot()
    renderer.render(snap)
    renderer.render(snap)
    assert renderer.frames_drawn == 1

    store.set_score(10)
    renderer.render(store.snapshot())
    assert renderer.frames_drawn == 2


def test_slow_time_tints_background():
    store = EntityStore()
    renderer = FieldRenderer(800, 600)
    normal = renderer.render(store.snapshot()).copy()
    store.activate_slow_time()
    slowed = renderer.render(store.snapshot())

    assert pixel(normal, 5, 5) != pixel(slowed, 5, 5)


def test_rect_is_clipped_to_buffer():
    buffer = new_buffer(20, 10)
    draw_box(buffer, -5, -5, 10, 10, (255, 0, 0))
    draw_box(buffer, 15, 5, 50, 50, (0, 255, 0))
    draw_box(buffer, 100, 100, 5, 5, (0, 0, 255))

    assert pixel(buffer, 0, 0) == (255, 0, 0)
    assert pixel(buffer, 5, 5) == (0, 0, 0)
    assert pixel(buffer, 19, 9) == (0, 255, 0)
    assert not np.any(buffer[:, :, 2])


def test_box_border_is_inside_the_box():
    buffer = new_buffer(20, 20)
    draw_box(buffer, 2, 2, 10, 10, (255, 0, 0), border=(255, 255, 255))

    assert pixel(buffer, 2, 2) == (255, 255, 255)
    assert pixel(buffer, 11, 6) == (255, 255, 255)
    assert pixel(buffer, 6, 6) == (255, 0, 0)
    assert pixel(buffer, 12, 6) == (0, 0, 0)


def test_disc_outline_without_fill_leaves_centre_untouched():
    buffer = new_buffer(40, 40)
    draw_disc(buffer, 20, 20, 10, None, outline=(255, 255, 255))
    assert pixel(buffer, 20, 20) == (0, 0, 0)
    assert pixel(buffer, 29, 20) == (255, 255, 255)


def test_vertical_gradient_endpoints():
    buffer = new_buffer(4, 11)
    vertical_gradient(buffer, (0, 0, 0), (100, 200, 50))
    assert pixel(buffer, 0, 0) == (0, 0, 0)
    assert pixel(buffer, 3, 10) == (100, 200, 50)


def test_disc_partly_off_buffer():
    buffer = new_buffer(30, 30)
    draw_disc(buffer, 0, 0, 5, (10, 20, 30))
    draw_disc(buffer, -50, -50, 5, (255, 255, 255))

    assert pixel(buffer, 0, 0) == (10, 20, 30)
    assert pixel(buffer, 3, 3) == (10, 20, 30)
    assert pixel(buffer, 6, 6) == (0, 0, 0)
    assert not (buffer == 255).any()
