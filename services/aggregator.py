"""Summary statistics over a window of sensor readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from models.readings import SensorReading

SUMMARY_FIELDS = ("temperature", "humidity", "pressure")


@dataclass
class MetricSummary:
    min_value: float | None = None
    max_value: float | None = None
    mean_value: float | None = None


@dataclass
class HistorySummary:
    """Computed statistics for a batch of sensor readings."""

    count: int = 0
    first_timestamp: int | None = None
    last_timestamp: int | None = None
    metrics: dict[str, MetricSummary] = field(
        default_factory=lambda: {name: MetricSummary() for name in SUMMARY_FIELDS}
    )


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, readings: Iterable[SensorReading]) -> HistorySummary:
        summary = HistorySummary()
        totals = dict.fromkeys(SUMMARY_FIELDS, 0.0)

        for reading in readings:
            summary.count += 1
            if summary.first_timestamp is None:
                summary.first_timestamp = reading.timestamp
            summary.last_timestamp = reading.timestamp

            for name in SUMMARY_FIELDS:
                value = getattr(reading, name)
                totals[name] += value
                metric = summary.metrics[name]
                if metric.min_value is None or value < metric.min_value:
                    metric.min_value = value
                if metric.max_value is None or value > metric.max_value:
                    metric.max_value = value

        if summary.count:
            for name in SUMMARY_FIELDS:
                summary.metrics[name].mean_value = totals[name] / summary.count

        return summary
