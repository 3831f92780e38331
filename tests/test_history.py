from __future__ import annotations

import pytest

from models.readings import SensorReading
from services.history import HistoryBuffer


def _reading(index: int) -> SensorReading:
    return SensorReading.create(
        timestamp=index * 2000, temperature=20 + index * 0.01, humidity=50.0, pressure=1013.0
    )


def test_push_keeps_insertion_order_and_latest() -> None:
    history = HistoryBuffer(capacity=5)
    readings = [_reading(i) for i in range(3)]

    for reading in readings:
        history.push(reading)

    assert len(history) == 3
    assert history.readings() == tuple(readings)
    assert history.latest == readings[-1]


def test_overflow_evicts_oldest_first() -> None:
    history = HistoryBuffer()
    readings = [_reading(i) for i in range(73)]

    for reading in readings:
        history.push(reading)

    assert history.capacity == 50
    assert len(history) == 50
    assert history.readings() == tuple(readings[-50:])
    assert history.latest == readings[-1]


def test_empty_buffer_has_no_latest() -> None:
    history = HistoryBuffer()

    assert history.latest is None
    assert history.readings() == ()


def test_snapshot_is_not_affected_by_later_pushes() -> None:
    history = HistoryBuffer(capacity=2)
    history.push(_reading(1))
    snapshot = history.readings()

    history.push(_reading(2))
    history.push(_reading(3))

    assert snapshot == (_reading(1),)


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        HistoryBuffer(capacity=0)
