"""Rolling in-memory history of sensor readings."""

from __future__ import annotations

from collections import deque
from typing import Deque, Optional, Tuple

from models.readings import SensorReading

DEFAULT_HISTORY_CAPACITY = 50


class HistoryBuffer:
    """Fixed-capacity FIFO of readings; the oldest entry is evicted on overflow."""

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("History capacity must be positive.")
        self.capacity = capacity
        self._readings: Deque[SensorReading] = deque(maxlen=capacity)

    def push(self, reading: SensorReading) -> None:
        self._readings.append(reading)

    def readings(self) -> Tuple[SensorReading, ...]:
        """Return an ordered snapshot, oldest first."""
        return tuple(self._readings)

    @property
    def latest(self) -> Optional[SensorReading]:
        return self._readings[-1] if self._readings else None

    def __len__(self) -> int:
        return len(self._readings)
