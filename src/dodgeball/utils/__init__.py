"""Utilities for dodgeball."""

from .score_history import ScoreHistory, ScoreEntry

__all__ = ["ScoreHistory", "ScoreEntry"]
