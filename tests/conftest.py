"""Shared fixtures: a virtual clock, a seeded controller and a recording audio sink."""

import random

import pytest

from dodgeball.audio.base import AudioSink
from dodgeball.core.events import EventBus
from dodgeball.core.scheduler import RunScope, VirtualScheduler
from dodgeball.game.controller import GameController
from dodgeball.game.store import EntityStore


class RecordingAudio(AudioSink):
    def __init__(self) -> None:
        self.hits = 0
        self.successes = 0

    def play_hit(self) -> None:
        self.hits += 1

    def play_success(self) -> None:
        self.successes += 1


class BrokenAudio(AudioSink):
    def play_hit(self) -> None:
        raise RuntimeError("mixer gone")

    def play_success(self) -> None:
        raise RuntimeError("mixer gone")


@pytest.fixture
def scheduler():
    return VirtualScheduler(frame_interval_ms=10)


@pytest.fixture
def store():
    return EntityStore()


@pytest.fixture
def scope(scheduler):
    scope = RunScope(scheduler)
    scope.open()
    return scope


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def audio():
    return RecordingAudio()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def controller(scheduler, audio, event_bus, rng):
    return GameController(
        scheduler,
        audio=audio,
        event_bus=event_bus,
        rng=rng,
        physics_interval_ms=10,
    )


@pytest.fixture
def playing(controller):
    """A started controller whose spawners are disarmed, so the field stays empty."""
    controller.start()
    controller.spawner.disarm()
    return controller
