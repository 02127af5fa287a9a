"""
Hosts for the simulation: a pygame window and a headless autopilot.
"""

from .autopilot import Autopilot, run_headless

__all__ = ["Autopilot", "run_headless"]
