"""Synthetic day-long series standing in for a real time-series store."""

from __future__ import annotations

import asyncio
import math
import random
from datetime import date, datetime
from functools import lru_cache
from typing import List, Optional, Union

from models.readings import SensorReading
from settings import get_settings

POINTS_PER_DAY = 48
POINT_SPACING_MS = 30 * 60 * 1000


def parse_day(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD.") from exc


class HistoricalDataProvider:
    """Models a diurnal cycle: warmest mid-afternoon, most humid before dawn."""

    def __init__(
        self,
        latency: float = 0.8,
        timeout: Optional[float] = 10.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.latency = latency
        self.timeout = timeout
        self._rng = rng or random.Random()

    async def get_historical_data(self, day: Union[date, str]) -> List[SensorReading]:
        target = parse_day(day)
        if self.timeout is None:
            return await self._query(target)
        return await asyncio.wait_for(self._query(target), timeout=self.timeout)

    async def _query(self, day: date) -> List[SensorReading]:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

        # Step on the absolute timeline; wall-clock steps break on DST days.
        start_ms = int(datetime(day.year, day.month, day.day).timestamp() * 1000)
        series: List[SensorReading] = []
        for index in range(POINTS_PER_DAY):
            hour = index / 2
            cycle = -math.cos(((hour - 4) / 24) * 2 * math.pi)
            base_temp = 22 + cycle * 5
            base_humid = 60 - cycle * 20
            series.append(
                SensorReading.create(
                    timestamp=start_ms + index * POINT_SPACING_MS,
                    temperature=base_temp + self._rng.uniform(-1.0, 1.0),
                    humidity=base_humid + self._rng.uniform(-2.5, 2.5),
                    pressure=1013 + self._rng.uniform(-2.5, 2.5),
                )
            )
        return series


@lru_cache
def build_default_historical_provider() -> HistoricalDataProvider:
    settings = get_settings()
    rng = random.Random(settings.simulation_seed)
    return HistoricalDataProvider(
        latency=settings.historical_latency,
        timeout=settings.historical_timeout,
        rng=rng,
    )
