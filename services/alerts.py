"""Threshold evaluation and alert-onset detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from models.readings import AlertState, SensorReading, Thresholds


def evaluate_alerts(reading: Optional[SensorReading], thresholds: Thresholds) -> AlertState:
    """Compare a reading against the thresholds; values on a bound do not alert."""
    if reading is None:
        return AlertState()
    return AlertState(
        is_temp_alert=(
            reading.temperature > thresholds.temp_max
            or reading.temperature < thresholds.temp_min
        ),
        is_humid_alert=(
            reading.humidity > thresholds.humid_max
            or reading.humidity < thresholds.humid_min
        ),
    )


def alert_onset(previous: bool, current: bool) -> bool:
    return current and not previous


class AlertMonitor:
    """Remembers the last alert flag and reports false-to-true transitions."""

    def __init__(self, on_onset: Optional[Callable[[AlertState], None]] = None) -> None:
        self._on_onset = on_onset
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def observe(self, state: AlertState) -> bool:
        fired = alert_onset(self._active, state.has_any_alert)
        self._active = state.has_any_alert
        if fired and self._on_onset is not None:
            self._on_onset(state)
        return fired


@dataclass(frozen=True)
class AlertLogEntry:
    reading: SensorReading
    violations: Tuple[str, ...]


def _violations(reading: SensorReading, thresholds: Thresholds) -> Tuple[str, ...]:
    found: List[str] = []
    if reading.temperature > thresholds.temp_max:
        found.append("temp_high")
    if reading.temperature < thresholds.temp_min:
        found.append("temp_low")
    if reading.humidity > thresholds.humid_max:
        found.append("humid_high")
    if reading.humidity < thresholds.humid_min:
        found.append("humid_low")
    return tuple(found)


def alert_log(readings: Iterable[SensorReading], thresholds: Thresholds) -> List[AlertLogEntry]:
    """Out-of-range readings, newest first, tagged with the bounds they crossed."""
    entries: List[AlertLogEntry] = []
    for reading in reversed(list(readings)):
        violations = _violations(reading, thresholds)
        if violations:
            entries.append(AlertLogEntry(reading=reading, violations=violations))
    return entries
