from __future__ import annotations

import logging
from typing import List

import numpy as np
import pytest

from models.readings import SoundType, Thresholds
from services.sound import SAMPLE_RATE, SoundNotifier, synthesize


class RecordingPlayer:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.played: List[int] = []
        self.closed = False

    def play(self, samples: np.ndarray, sample_rate: int) -> None:
        if self.fail:
            raise RuntimeError("no audio device")
        self.played.append(len(samples))

    def close(self) -> None:
        self.closed = True


@pytest.mark.parametrize(
    "sound_type, duration",
    [(SoundType.beep, 0.3), (SoundType.alarm, 0.5), (SoundType.chime, 0.8)],
)
def test_pattern_durations(sound_type: SoundType, duration: float) -> None:
    samples = synthesize(sound_type)

    assert len(samples) == round(duration * SAMPLE_RATE)
    assert np.all(np.abs(samples) <= 1.0)


def _window_peak(samples: np.ndarray, start: float, end: float) -> float:
    return float(np.max(np.abs(samples[int(start * SAMPLE_RATE) : int(end * SAMPLE_RATE)])))


def test_beep_attacks_then_decays() -> None:
    samples = synthesize(SoundType.beep)

    assert _window_peak(samples, 0.0, 0.005) < 0.03
    assert _window_peak(samples, 0.045, 0.055) == pytest.approx(0.2, abs=0.02)
    assert _window_peak(samples, 0.29, 0.3) < 0.02


def test_alarm_is_square_wave_fading_out() -> None:
    samples = synthesize(SoundType.alarm)

    held = samples[int(0.05 * SAMPLE_RATE) : int(0.06 * SAMPLE_RATE)]
    # Square wave: every sample sits at the envelope level, never in between.
    assert np.allclose(np.abs(held), np.abs(held).max(), atol=0.005)
    assert _window_peak(samples, 0.04, 0.06) <= 0.1 + 1e-9
    assert _window_peak(samples, 0.49, 0.5) < 0.005


def test_chime_is_longest_pattern_with_quiet_tail() -> None:
    samples = synthesize(SoundType.chime)

    assert _window_peak(samples, 0.09, 0.11) == pytest.approx(0.2, abs=0.02)
    assert _window_peak(samples, 0.79, 0.8) < 0.015


def test_notify_plays_configured_pattern() -> None:
    player = RecordingPlayer()
    notifier = SoundNotifier(player=player)

    assert notifier.notify(Thresholds(sound_type=SoundType.chime)) is True

    assert player.played == [round(0.8 * SAMPLE_RATE)]


def test_notify_respects_sound_toggle() -> None:
    player = RecordingPlayer()
    notifier = SoundNotifier(player=player)

    assert notifier.notify(Thresholds(sound_enabled=False)) is False

    assert player.played == []


def test_audio_failure_is_logged_not_raised(caplog) -> None:
    notifier = SoundNotifier(player=RecordingPlayer(fail=True))

    with caplog.at_level(logging.WARNING, logger="services.sound"):
        assert notifier.play(SoundType.beep) is False

    assert "could not be played" in caplog.text


def test_close_releases_player_once() -> None:
    player = RecordingPlayer()
    notifier = SoundNotifier(player=player)

    notifier.close()
    notifier.close()

    assert player.closed is True
