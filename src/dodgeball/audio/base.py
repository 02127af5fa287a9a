"""Audio collaborator interface used by the simulation core."""

from abc import ABC, abstractmethod


class AudioSink(ABC):
    """Notifications the simulation core sends to audio."""

    @abstractmethod
    def play_hit(self) -> None:
        """A collision happened (absorbed or fatal)."""
        ...

    @abstractmethod
    def play_success(self) -> None:
        """An obstacle was dodged."""
        ...


class SilentAudio(AudioSink):
    """Audio sink that plays nothing (headless runs, tests)."""

    def play_hit(self) -> None:
        pass

    def play_success(self) -> None:
        pass
