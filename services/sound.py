"""Audible alert patterns synthesized with numpy and played through pygame."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import numpy as np

from models.readings import SoundType, Thresholds

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100


def _times(duration: float, sample_rate: int) -> np.ndarray:
    return np.arange(int(round(duration * sample_rate))) / sample_rate


def _linear(t: np.ndarray, t0: float, t1: float, v0: float, v1: float) -> np.ndarray:
    ratio = np.clip((t - t0) / (t1 - t0), 0.0, 1.0)
    return v0 + (v1 - v0) * ratio


def _exponential(t: np.ndarray, t0: float, t1: float, v0: float, v1: float) -> np.ndarray:
    ratio = np.clip((t - t0) / (t1 - t0), 0.0, 1.0)
    return v0 * (v1 / v0) ** ratio


def _piecewise(t: np.ndarray, *segments) -> np.ndarray:
    """Chain ``(ramp, t0, t1, v0, v1)`` segments; each covers ``t0 <= t < t1``."""
    out = np.zeros_like(t)
    for ramp, t0, t1, v0, v1 in segments:
        mask = (t >= t0) & (t < t1)
        out[mask] = ramp(t[mask], t0, t1, v0, v1)
    last = segments[-1]
    out[t >= last[2]] = last[4]
    return out


def _oscillate(frequency: np.ndarray, sample_rate: int, wave: str) -> np.ndarray:
    phase = 2 * np.pi * np.cumsum(frequency) / sample_rate
    sine = np.sin(phase)
    if wave == "square":
        return np.where(sine >= 0, 1.0, -1.0)
    if wave == "triangle":
        return (2 / np.pi) * np.arcsin(sine)
    return sine


def _beep(sample_rate: int) -> np.ndarray:
    t = _times(0.3, sample_rate)
    frequency = np.full_like(t, 880.0)
    gain = _piecewise(
        t,
        (_linear, 0.0, 0.05, 0.0, 0.2),
        (_exponential, 0.05, 0.3, 0.2, 0.01),
    )
    return _oscillate(frequency, sample_rate, "sine") * gain


def _alarm(sample_rate: int) -> np.ndarray:
    t = _times(0.5, sample_rate)
    frequency = _piecewise(
        t,
        (_exponential, 0.0, 0.1, 440.0, 880.0),
        (_exponential, 0.1, 0.2, 880.0, 440.0),
    )
    gain = _piecewise(
        t,
        (_linear, 0.0, 0.05, 0.0, 0.1),
        (_linear, 0.05, 0.5, 0.1, 0.0),
    )
    return _oscillate(frequency, sample_rate, "square") * gain


def _chime(sample_rate: int) -> np.ndarray:
    t = _times(0.8, sample_rate)
    frequency = _piecewise(t, (_exponential, 0.0, 0.4, 523.25, 783.99))
    gain = _piecewise(
        t,
        (_linear, 0.0, 0.1, 0.0, 0.2),
        (_exponential, 0.1, 0.8, 0.2, 0.01),
    )
    return _oscillate(frequency, sample_rate, "triangle") * gain


_PATTERNS = {
    SoundType.beep: _beep,
    SoundType.alarm: _alarm,
    SoundType.chime: _chime,
}


def synthesize(sound_type: SoundType, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Render a pattern as mono float samples in ``[-1, 1]``."""
    return _PATTERNS[SoundType(sound_type)](sample_rate)


class AudioPlayer(Protocol):
    def play(self, samples: np.ndarray, sample_rate: int) -> None: ...

    def close(self) -> None: ...


class PygamePlayer:
    """Owns the pygame mixer: opened on first playback, released by ``close``."""

    def __init__(self) -> None:
        self._pygame = None

    def _ensure_mixer(self, sample_rate: int):
        if self._pygame is None:
            import pygame

            # Stereo output; some backends stay silent on mono buffers.
            pygame.mixer.init(frequency=sample_rate, size=-16, channels=2)
            pygame.sndarray.use_arraytype("numpy")
            self._pygame = pygame
        return self._pygame

    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        pygame = self._ensure_mixer(sample_rate)
        pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
        stereo = np.ascontiguousarray(np.column_stack((pcm, pcm)))
        pygame.sndarray.make_sound(stereo).play()

    def close(self) -> None:
        if self._pygame is not None:
            self._pygame.mixer.quit()
            self._pygame = None


class SoundNotifier:
    """Plays alert patterns on a best-effort basis; audio errors never escape."""

    def __init__(self, player: Optional[AudioPlayer] = None, sample_rate: int = SAMPLE_RATE) -> None:
        self._player = player
        self.sample_rate = sample_rate

    def _get_player(self) -> AudioPlayer:
        if self._player is None:
            self._player = PygamePlayer()
        return self._player

    def play(self, sound_type: SoundType) -> bool:
        try:
            samples = synthesize(sound_type, self.sample_rate)
            self._get_player().play(samples, self.sample_rate)
        except Exception:  # noqa: BLE001 - audio is best effort
            logger.warning(
                "Alert sound could not be played",
                exc_info=True,
                extra={"sound_type": sound_type},
            )
            return False
        return True

    def notify(self, thresholds: Thresholds) -> bool:
        if not thresholds.sound_enabled:
            return False
        return self.play(thresholds.sound_type)

    def close(self) -> None:
        if self._player is None:
            return
        try:
            self._player.close()
        except Exception:  # noqa: BLE001 - releasing audio must not break teardown
            logger.warning("Audio device release failed", exc_info=True)
        finally:
            self._player = None
