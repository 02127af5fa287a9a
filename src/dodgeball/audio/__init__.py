"""
Dodgeball audio - chiptune hit and dodge sounds.
"""

from .base import AudioSink, SilentAudio
from .engine import AudioEngine

__all__ = ["AudioEngine", "AudioSink", "SilentAudio"]
