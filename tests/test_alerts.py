from __future__ import annotations

from typing import List

import pytest

from models.readings import AlertState, SensorReading, Thresholds
from services.alerts import AlertMonitor, alert_log, alert_onset, evaluate_alerts

THRESHOLDS = Thresholds(temp_min=18.0, temp_max=28.0, humid_min=30.0, humid_max=70.0)


def _reading(temperature: float, humidity: float = 50.0, timestamp: int = 0) -> SensorReading:
    return SensorReading.create(
        timestamp=timestamp, temperature=temperature, humidity=humidity, pressure=1013.25
    )


@pytest.mark.parametrize(
    "temperature, expected",
    [
        (17.9, True),
        (18.0, False),
        (23.0, False),
        (28.0, False),
        (28.1, True),
    ],
)
def test_temperature_alert_uses_strict_bounds(temperature: float, expected: bool) -> None:
    state = evaluate_alerts(_reading(temperature), THRESHOLDS)

    assert state.is_temp_alert is expected
    assert state.is_humid_alert is False


@pytest.mark.parametrize(
    "humidity, expected",
    [(29.9, True), (30.0, False), (70.0, False), (70.5, True)],
)
def test_humidity_alert_uses_strict_bounds(humidity: float, expected: bool) -> None:
    state = evaluate_alerts(_reading(22.0, humidity), THRESHOLDS)

    assert state.is_humid_alert is expected
    assert state.has_any_alert is expected


def test_no_reading_means_no_alerts() -> None:
    state = evaluate_alerts(None, THRESHOLDS)

    assert state == AlertState()
    assert state.has_any_alert is False


def test_alert_onset_only_on_rising_edge() -> None:
    assert alert_onset(False, True) is True
    assert alert_onset(True, True) is False
    assert alert_onset(True, False) is False
    assert alert_onset(False, False) is False


def test_monitor_fires_on_transitions_into_alert() -> None:
    fired_at: List[int] = []
    pattern = [False, False, True, True, False, True]
    index = 0

    def on_onset(_state: AlertState) -> None:
        fired_at.append(index)

    monitor = AlertMonitor(on_onset=on_onset)
    for index, flag in enumerate(pattern):
        monitor.observe(AlertState(is_temp_alert=flag))

    assert fired_at == [2, 5]
    assert monitor.active is True


def test_monitor_rearms_after_a_clear_reading() -> None:
    monitor = AlertMonitor()
    assert monitor.observe(AlertState(is_humid_alert=True)) is True
    assert monitor.observe(AlertState(is_humid_alert=True)) is False

    assert monitor.observe(AlertState()) is False

    assert monitor.observe(AlertState(is_humid_alert=True)) is True


def test_alert_log_lists_violations_newest_first() -> None:
    readings = [
        _reading(22.0, 50.0, timestamp=1),
        _reading(29.0, 50.0, timestamp=2),
        _reading(17.0, 75.0, timestamp=3),
        _reading(22.0, 25.0, timestamp=4),
        _reading(28.0, 70.0, timestamp=5),
    ]

    entries = alert_log(readings, THRESHOLDS)

    assert [entry.reading.timestamp for entry in entries] == [4, 3, 2]
    assert entries[0].violations == ("humid_low",)
    assert entries[1].violations == ("temp_low", "humid_high")
    assert entries[2].violations == ("temp_high",)
