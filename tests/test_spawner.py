import random
from dataclasses import replace

import pytest

from dodgeball.game.spawner import Spawner
from dodgeball.game.store import ObstacleType, PowerUpType


class ScriptedRandom(random.Random):
    """random() always returns ``roll``; uniform() always returns the low bound."""

    def __init__(self, roll: float) -> None:
        super().__init__(0)
        self.roll = roll

    def random(self) -> float:
        return self.roll

    def uniform(self, a, b):
        return a


@pytest.fixture
def spawner(store, scope, rng):
    return Spawner(store, scope, rng)


def test_obstacles_fit_the_field(spawner):
    for _ in range(200):
        for o in spawner.spawn_obstacles(3):
            assert o.x >= 0
            assert o.right <= 800 + 1e-9
            assert o.y == 0
            assert o.height == 20
            assert not o.passed


def test_low_score_spawns_only_normal_obstacles(spawner):
    obstacles = [o for _ in range(300) for o in spawner.spawn_obstacles(1)]
    assert {o.type for o in obstacles} == {ObstacleType.NORMAL}
    section = 800 / 4
    for o in obstacles:
        assert 0.4 * section <= o.width <= 0.8 * section


def test_special_types_above_300(spawner, store):
    store.set_score(310)
    obstacles = [o for _ in range(600) for o in spawner.spawn_obstacles(1)]
    kinds = {o.type for o in obstacles}

    assert ObstacleType.NORMAL in kinds
    assert kinds & {ObstacleType.WIDE, ObstacleType.MOVING}

    section = 800 / 4
    for o in obstacles:
        if o.type == ObstacleType.WIDE:
            assert 1.5 * section <= o.width <= 2.0 * section
            assert o.move_speed == 0
        elif o.type == ObstacleType.MOVING:
            assert o.move_direction in (-1, 1)
            assert 1 <= o.move_speed <= 3
            assert 0.4 * section <= o.width <= 0.8 * section


def test_no_special_types_at_exactly_300(store, scope):
    store.set_score(300)
    spawner = Spawner(store, scope, ScriptedRandom(0.0))
    assert all(o.type == ObstacleType.NORMAL for o in spawner.spawn_obstacles(3))


def test_placement_gives_up_after_bounded_retries(store, scope):
    spawner = Spawner(store, scope, ScriptedRandom(0.99))

    batch = spawner.spawn_obstacles(3)

    # Every candidate collides, so the last one is accepted anyway.
    assert len(batch) == 3
    assert [o.x for o in batch] == [0, 0, 0]


def test_slow_time_throttles_obstacle_firings(store, scope):
    store.activate_slow_time()

    Spawner(store, scope, ScriptedRandom(0.5)).on_obstacle_interval()
    assert store.obstacles == ()

    Spawner(store, scope, ScriptedRandom(0.1)).on_obstacle_interval()
    assert len(store.obstacles) == 1


def test_firing_spawns_obstacle_count_and_appends(spawner, store):
    spawner.on_obstacle_interval()
    store.set_score(500)
    store.increase_obstacle_count()
    spawner.on_obstacle_interval()

    assert len(store.obstacles) == 3


def test_power_ups_gated_on_score(spawner, store):
    store.set_score(190)
    spawner.on_power_up_interval()
    assert store.power_ups == ()

    store.set_score(200)
    spawner.on_power_up_interval()
    assert len(store.power_ups) == 1


def test_never_more_than_two_uncollected_power_ups(spawner, store):
    store.set_score(200)
    for _ in range(5):
        spawner.on_power_up_interval()
        assert store.uncollected_power_ups <= 2
    assert len(store.power_ups) == 2

    first, second = store.power_ups
    store.set_power_ups([replace(first, collected=True), second])
    spawner.on_power_up_interval()
    assert store.uncollected_power_ups == 2


def test_power_up_placement(spawner):
    kinds = set()
    for _ in range(300):
        p = spawner.spawn_power_up()
        assert 15 <= p.x <= 785
        assert p.y == 0
        assert p.radius == 15
        assert not p.collected
        kinds.add(p.type)
    assert kinds == set(PowerUpType)


def test_armed_spawner_follows_store_interval(spawner, store, scheduler):
    spawner.arm()
    assert spawner.armed
    store.increase_spawn_rate()

    scheduler.advance(1800)
    assert len(store.obstacles) == 1

    scheduler.advance(1724)
    assert len(store.obstacles) == 1
    scheduler.advance(1)
    assert len(store.obstacles) == 2


def test_power_up_generator_period(spawner, store, scheduler):
    store.set_score(250)
    spawner.arm()

    scheduler.advance(9999)
    assert store.power_ups == ()
    scheduler.advance(1)
    assert len(store.power_ups) == 1


def test_disarm_stops_both_generators(spawner, store, scheduler):
    store.set_score(250)
    spawner.arm()
    spawner.disarm()

    scheduler.advance(30000)

    assert not spawner.armed
    assert store.obstacles == ()
    assert store.power_ups == ()


def test_closing_scope_stops_generators(spawner, store, scope, scheduler):
    spawner.arm()
    scope.close()
    scheduler.advance(5000)
    assert store.obstacles == ()
