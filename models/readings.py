"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

SEA_LEVEL_PRESSURE_HPA = 1013.25


def altitude_from_pressure(pressure: float) -> float:
    """Estimate altitude in metres with the international barometric formula."""
    return 44330.0 * (1.0 - (pressure / SEA_LEVEL_PRESSURE_HPA) ** (1.0 / 5.255))


class SoundType(str, Enum):
    """Audible patterns played on alert onset."""

    beep = "beep"
    alarm = "alarm"
    chime = "chime"


class ConnectionStatus(str, Enum):
    """Connection lifecycle of the polling controller."""

    disconnected = "disconnected"
    connecting = "connecting"
    connected_mock = "connected-mock"
    connected_real = "connected-real"
    error = "error"


@dataclass(frozen=True, slots=True)
class SensorReading:
    """One timestamped snapshot of the environment."""

    timestamp: int
    temperature: float
    humidity: float
    pressure: float
    altitude: float

    @classmethod
    def create(
        cls,
        timestamp: int,
        temperature: float,
        humidity: float,
        pressure: float,
        altitude: Optional[float] = None,
    ) -> "SensorReading":
        if altitude is None:
            altitude = altitude_from_pressure(pressure)
        return cls(
            timestamp=int(timestamp),
            temperature=float(temperature),
            humidity=float(humidity),
            pressure=float(pressure),
            altitude=float(altitude),
        )


@dataclass(frozen=True, slots=True)
class Thresholds:
    """User-configurable alert bounds and notification preferences."""

    temp_min: float = 18.0
    temp_max: float = 28.0
    humid_min: float = 30.0
    humid_max: float = 70.0
    sound_enabled: bool = True
    sound_type: SoundType = SoundType.beep


@dataclass(frozen=True, slots=True)
class AlertState:
    is_temp_alert: bool = False
    is_humid_alert: bool = False

    @property
    def has_any_alert(self) -> bool:
        return self.is_temp_alert or self.is_humid_alert
