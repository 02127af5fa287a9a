"""DodgeBall - dodge the falling sticks, grab the power-ups."""

__version__ = "0.1.0"
