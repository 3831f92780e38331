"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from models.readings import AlertState, ConnectionStatus, SensorReading, SoundType, Thresholds
from services.aggregator import HistorySummary
from services.alerts import AlertLogEntry


class Reading(BaseModel):
    """One sensor snapshot as exposed to clients."""

    timestamp: int = Field(..., description="Epoch milliseconds.")
    temperature: float = Field(..., description="Degrees Celsius.")
    humidity: float = Field(..., description="Relative humidity, percent.")
    pressure: float = Field(..., description="Hectopascals.")
    altitude: float = Field(..., description="Metres, device-measured or barometric.")

    @classmethod
    def from_domain(cls, reading: SensorReading) -> "Reading":
        return cls(
            timestamp=reading.timestamp,
            temperature=reading.temperature,
            humidity=reading.humidity,
            pressure=reading.pressure,
            altitude=reading.altitude,
        )


class ThresholdsModel(BaseModel):
    """Alert bounds and sound preferences; each minimum must not exceed its maximum."""

    temp_min: float = 18.0
    temp_max: float = 28.0
    humid_min: float = 30.0
    humid_max: float = 70.0
    sound_enabled: bool = True
    sound_type: SoundType = SoundType.beep

    @model_validator(mode="after")
    def _check_ranges(self) -> "ThresholdsModel":
        if self.temp_min > self.temp_max:
            raise ValueError("temp_min must not exceed temp_max")
        if self.humid_min > self.humid_max:
            raise ValueError("humid_min must not exceed humid_max")
        return self

    @classmethod
    def from_domain(cls, thresholds: Thresholds) -> "ThresholdsModel":
        return cls(
            temp_min=thresholds.temp_min,
            temp_max=thresholds.temp_max,
            humid_min=thresholds.humid_min,
            humid_max=thresholds.humid_max,
            sound_enabled=thresholds.sound_enabled,
            sound_type=thresholds.sound_type,
        )

    def to_domain(self) -> Thresholds:
        return Thresholds(
            temp_min=self.temp_min,
            temp_max=self.temp_max,
            humid_min=self.humid_min,
            humid_max=self.humid_max,
            sound_enabled=self.sound_enabled,
            sound_type=self.sound_type,
        )


class AlertStateModel(BaseModel):
    is_temp_alert: bool
    is_humid_alert: bool
    has_any_alert: bool

    @classmethod
    def from_domain(cls, state: AlertState) -> "AlertStateModel":
        return cls(
            is_temp_alert=state.is_temp_alert,
            is_humid_alert=state.is_humid_alert,
            has_any_alert=state.has_any_alert,
        )


class AlertLogItem(BaseModel):
    reading: Reading
    violations: List[str]

    @classmethod
    def from_domain(cls, entry: AlertLogEntry) -> "AlertLogItem":
        return cls(reading=Reading.from_domain(entry.reading), violations=list(entry.violations))


class AlertsResponse(BaseModel):
    state: AlertStateModel
    log: List[AlertLogItem] = Field(default_factory=list)


class ConnectRealRequest(BaseModel):
    ip: Optional[str] = Field(
        default=None, description="Device address; the configured default when omitted."
    )


class StatusResponse(BaseModel):
    """Connection state plus the latest reading and its alert flags."""

    status: ConnectionStatus
    device_ip: str
    polling: bool
    current: Optional[Reading] = None
    alerts: AlertStateModel


class AnalysisResponse(BaseModel):
    analysis: str


class MetricSummaryModel(BaseModel):
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    mean_value: Optional[float] = None


class HistorySummaryModel(BaseModel):
    count: int = Field(..., ge=0)
    first_timestamp: Optional[int] = None
    last_timestamp: Optional[int] = None
    metrics: Dict[str, MetricSummaryModel] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, summary: HistorySummary) -> "HistorySummaryModel":
        return cls(
            count=summary.count,
            first_timestamp=summary.first_timestamp,
            last_timestamp=summary.last_timestamp,
            metrics={
                name: MetricSummaryModel(
                    min_value=metric.min_value,
                    max_value=metric.max_value,
                    mean_value=metric.mean_value,
                )
                for name, metric in summary.metrics.items()
            },
        )


class SoundPreviewResponse(BaseModel):
    sound_type: SoundType
    played: bool
