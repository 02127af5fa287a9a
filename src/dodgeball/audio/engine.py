"""
Dodgeball audio - synthesized chiptune effects on the pygame mixer.

The simulation only ever calls ``play_hit`` and ``play_success``. Both are
fire-and-forget: playback problems are logged here and never reach the core.
Every sound is rendered once at init from numpy oscillators; nothing is
loaded from disk.
"""

from typing import Dict, Optional
import logging

import numpy as np
from numpy.typing import NDArray
import pygame

from dodgeball.audio.base import AudioSink

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
Wave = NDArray[np.float32]


def timeline(seconds: float) -> Wave:
    """Sample times for a clip of the given length."""
    return np.arange(int(SAMPLE_RATE * seconds), dtype=np.float32) / SAMPLE_RATE


def square(t: Wave, freq) -> Wave:
    return np.where((t * freq) % 1 < 0.5, 1.0, -1.0).astype(np.float32)


def triangle(t: Wave, freq) -> Wave:
    return (4 * np.abs((t * freq) % 1 - 0.5) - 1).astype(np.float32)


def sine(t: Wave, freq) -> Wave:
    return np.sin(2 * np.pi * freq * t).astype(np.float32)


def noise(n: int, rng: Optional[np.random.Generator] = None) -> Wave:
    rng = rng or np.random.default_rng()
    return rng.uniform(-1.0, 1.0, n).astype(np.float32)


def to_pcm(wave: Wave, gain: float = 1.0) -> NDArray[np.int16]:
    """Clip to [-1, 1] and convert to 16-bit stereo frames."""
    mono = (np.clip(wave * gain, -1.0, 1.0) * 32767).astype(np.int16)
    return np.column_stack((mono, mono))


def hit_wave() -> Wave:
    """Crunch: a falling square under a short noise burst."""
    t = timeline(0.25)
    freq = np.maximum(60, 220 - t * 600)
    phase = np.cumsum(freq) / SAMPLE_RATE
    body = np.where(phase % 1 < 0.5, 1.0, -1.0) * 0.25
    burst = noise(t.size) * 0.2 * np.clip(1 - t * 12, 0, 1)
    return ((body + burst) * np.clip(1 - t * 4, 0, 1)).astype(np.float32)


def success_wave() -> Wave:
    """Three-note rising arpeggio."""
    step = 0.08
    notes = np.array([659, 784, 1047], dtype=np.float32)
    t = timeline(step * len(notes))
    idx = np.minimum((t / step).astype(int), len(notes) - 1)
    env = np.clip(1 - (t - idx * step) * 10, 0, 1)
    return (square(t, notes[idx]) * 0.2 * env).astype(np.float32)


def music_wave(bpm: int = 140) -> Wave:
    """Four-bar loop: square lead, triangle bass, hat clicks on the beat."""
    beat = 60.0 / bpm
    t = timeline(beat * 16)
    melody = np.array([523, 659, 784, 659, 587, 698, 880, 698], dtype=np.float32)
    bass = np.array([131, 175, 196, 165], dtype=np.float32)

    bar = (t / (beat * 4)).astype(int) % len(bass)
    step = (t / (beat / 2)).astype(int) % len(melody)
    beat_pos = (t / beat) % 1

    wave = square(t, melody[step]) * 0.08 * np.maximum(0.3, 1 - beat_pos * 2)
    wave += triangle(t, bass[bar]) * 0.15
    wave += sine(t, bass[bar] * 2) * 0.04
    wave += np.where(beat_pos < 0.04, noise(t.size) * 0.1, 0)
    return (wave * 0.6).astype(np.float32)


class AudioEngine(AudioSink):
    """
    Chiptune sound effects for dodgeball.

    The dodge jingle is throttled to every ``success_every``-th dodge (every
    100 points at the default of 10), so a busy field does not turn into noise.
    """

    EFFECT_VOLUME = {"hit": 0.5, "success": 0.35}
    MUSIC_VOLUME = 0.2
    MUSIC_CHANNEL = 0

    def __init__(self, success_every: int = 10, volume: float = 0.6) -> None:
        self.master_volume = max(0.0, min(1.0, volume))
        self._success_every = max(1, success_every)
        self._success_count = 0
        self._sounds: Dict[str, pygame.mixer.Sound] = {}
        self._music: Optional[pygame.mixer.Channel] = None
        self._ready = False
        self._muted = False

    @property
    def initialized(self) -> bool:
        return self._ready

    def init(self) -> bool:
        """Open the mixer and render every sound. False if audio is unavailable."""
        try:
            pygame.mixer.pre_init(SAMPLE_RATE, -16, 2, 1024)
            pygame.mixer.init()
            pygame.mixer.set_num_channels(8)
            for name, wave in (
                ("hit", hit_wave()),
                ("success", success_wave()),
                ("music", music_wave()),
            ):
                self._sounds[name] = pygame.sndarray.make_sound(to_pcm(wave))
        except Exception as e:
            logger.error(f"Audio init failed: {e}")
            return False
        self._ready = True
        logger.info(f"Audio engine ready ({len(self._sounds)} sounds)")
        return True

    def play(self, name: str, volume: float = 1.0, loops: int = 0) -> Optional[pygame.mixer.Channel]:
        if not self._ready or self._muted:
            return None
        sound = self._sounds.get(name)
        if sound is None:
            logger.warning(f"Unknown sound: {name}")
            return None
        try:
            sound.set_volume(volume * self.master_volume)
            return sound.play(loops=loops)
        except Exception as e:
            logger.error(f"Could not play {name}: {e}")
            return None

    # AudioSink
    def play_hit(self) -> None:
        self.play("hit", volume=self.EFFECT_VOLUME["hit"])

    def play_success(self) -> None:
        self._success_count += 1
        if self._success_count % self._success_every == 0:
            self.play("success", volume=self.EFFECT_VOLUME["success"])

    def reset_throttle(self) -> None:
        """Start counting dodges from zero (new run)."""
        self._success_count = 0

    def play_music(self) -> None:
        if not self._ready or self._muted or "music" not in self._sounds:
            return
        if self._music is not None and self._music.get_busy():
            return
        try:
            self._music = pygame.mixer.Channel(self.MUSIC_CHANNEL)
            self._music.set_volume(self.MUSIC_VOLUME * self.master_volume)
            self._music.play(self._sounds["music"], loops=-1, fade_ms=500)
        except Exception as e:
            logger.error(f"Could not start music: {e}")
            self._music = None

    def stop_music(self, fade_out_ms: int = 300) -> None:
        channel, self._music = self._music, None
        if channel is None:
            return
        try:
            if fade_out_ms > 0:
                channel.fadeout(fade_out_ms)
            else:
                channel.stop()
        except Exception as e:
            logger.debug(f"Could not stop music: {e}")

    def is_muted(self) -> bool:
        return self._muted

    def toggle_mute(self) -> bool:
        """Flip mute; paused channels resume where they were. Returns the new state."""
        self._muted = not self._muted
        if self._ready:
            (pygame.mixer.pause if self._muted else pygame.mixer.unpause)()
        return self._muted

    def cleanup(self) -> None:
        if not self._ready:
            return
        self.stop_music(fade_out_ms=0)
        pygame.mixer.quit()
        self._ready = False
        self._sounds.clear()
