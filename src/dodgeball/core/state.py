"""
Phase controller for a dodgeball run.

Phases:
    READY: Field reset, waiting for start
    PLAYING: Simulation ticking, spawners armed
    ENDED: Run finished, final score handed outward
"""

from enum import Enum, auto
from typing import Callable
import logging

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Lifecycle phases of a run."""
    READY = auto()
    PLAYING = auto()
    ENDED = auto()


PhaseListener = Callable[[Phase, Phase], None]


class PhaseController:
    """
    Holds exactly one phase value and validates transitions.

    Listeners run synchronously inside ``transition`` after the new
    phase is committed, so they always observe a settled phase.
    """

    VALID_TRANSITIONS: list[tuple[Phase, Phase]] = [
        (Phase.READY, Phase.PLAYING),    # start
        (Phase.PLAYING, Phase.ENDED),    # unprotected hit / end
        (Phase.ENDED, Phase.READY),      # restart
        (Phase.PLAYING, Phase.READY),    # restart mid-run
    ]

    def __init__(self, initial_phase: Phase = Phase.READY) -> None:
        self._phase = initial_phase
        self._listeners: list[PhaseListener] = []
        self._valid_transitions = set(self.VALID_TRANSITIONS)
        logger.info(f"PhaseController initialized with phase: {initial_phase.name}")

    @property
    def phase(self) -> Phase:
        """Get current phase."""
        return self._phase

    @property
    def is_playing(self) -> bool:
        return self._phase == Phase.PLAYING

    def can_transition(self, to_phase: Phase) -> bool:
        """Check if transition to given phase is valid."""
        return (self._phase, to_phase) in self._valid_transitions

    def transition(self, to_phase: Phase) -> bool:
        """
        Attempt to transition to a new phase.

        Returns:
            True if transition successful, False otherwise
        """
        if not self.can_transition(to_phase):
            logger.warning(
                f"Invalid transition: {self._phase.name} -> {to_phase.name}"
            )
            return False

        old_phase = self._phase
        self._phase = to_phase

        logger.info(f"Phase transition: {old_phase.name} -> {to_phase.name}")

        for listener in list(self._listeners):
            try:
                listener(old_phase, to_phase)
            except Exception as e:
                logger.error(f"Error in phase listener: {e}")

        return True

    def add_listener(self, callback: PhaseListener) -> None:
        """Add a phase change listener."""
        self._listeners.append(callback)

    def remove_listener(self, callback: PhaseListener) -> None:
        """Remove a phase change listener."""
        if callback in self._listeners:
            self._listeners.remove(callback)
