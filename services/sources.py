"""Reading sources: a random-walk simulator and an HTTP sensor device."""

from __future__ import annotations

import asyncio
import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import httpx

from models.readings import SensorReading

logger = logging.getLogger(__name__)

DEVICE_TIMEOUT_SECONDS = 3.0


@dataclass(frozen=True)
class DriftBounds:
    """Largest per-read change applied to each simulated quantity."""

    temperature: float = 0.15
    humidity: float = 0.5
    pressure: float = 0.1


HUMIDITY_FLOOR = 10.0
HUMIDITY_CEILING = 99.0


def _now_millis() -> int:
    return int(time.time() * 1000)


class ReadingSimulator:
    """Random-walk stand-in for a DHT22 + BMP280 pair.

    Each call perturbs the previous state rather than sampling afresh, so
    consecutive readings stay within :class:`DriftBounds` of each other.
    """

    def __init__(
        self,
        temperature: float = 24.0,
        humidity: float = 55.0,
        pressure: float = 1013.25,
        drift: DriftBounds = DriftBounds(),
        rng: Optional[random.Random] = None,
        clock: Callable[[], int] = _now_millis,
    ) -> None:
        self.temperature = temperature
        self.humidity = humidity
        self.pressure = pressure
        self.drift = drift
        self._rng = rng or random.Random()
        self._clock = clock
        self._last_timestamp = 0

    @classmethod
    def seeded(cls, seed: Optional[int]) -> "ReadingSimulator":
        return cls(rng=random.Random(seed))

    def read(self) -> SensorReading:
        self.temperature += self._rng.uniform(-self.drift.temperature, self.drift.temperature)
        self.humidity += self._rng.uniform(-self.drift.humidity, self.drift.humidity)
        self.pressure += self._rng.uniform(-self.drift.pressure, self.drift.pressure)
        self.humidity = min(max(self.humidity, HUMIDITY_FLOOR), HUMIDITY_CEILING)

        timestamp = max(self._clock(), self._last_timestamp)
        self._last_timestamp = timestamp
        return SensorReading.create(
            timestamp=timestamp,
            temperature=self.temperature,
            humidity=self.humidity,
            pressure=self.pressure,
        )


class DeviceReadError(Exception):
    """Raised when the sensor device cannot produce a usable reading."""

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


def _number(payload: Mapping[str, Any], field: str) -> float:
    value = payload.get(field)
    if value is None or isinstance(value, bool):
        raise DeviceReadError(f"Device payload missing {field!r}.", reason="payload")
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise DeviceReadError(
            f"Device payload field {field!r} is not numeric: {value!r}", reason="payload"
        ) from exc
    if not math.isfinite(parsed):
        raise DeviceReadError(f"Device payload field {field!r} is not finite.", reason="payload")
    return parsed


def parse_device_payload(payload: Any, timestamp: int) -> SensorReading:
    if not isinstance(payload, Mapping):
        raise DeviceReadError("Device payload is not a JSON object.", reason="payload")
    altitude = _number(payload, "altitude") if payload.get("altitude") is not None else None
    return SensorReading.create(
        timestamp=timestamp,
        temperature=_number(payload, "temperature"),
        humidity=_number(payload, "humidity"),
        pressure=_number(payload, "pressure"),
        altitude=altitude,
    )


def device_url(ip: str) -> httpx.URL:
    """Build the device data URL, rejecting addresses that cannot be dialled."""
    candidate = (ip or "").strip()
    try:
        url = httpx.URL(f"http://{candidate}/data")
    except httpx.InvalidURL as exc:
        raise DeviceReadError(f"Invalid device address {ip!r}: {exc}", reason="address") from exc
    if not url.host or url.path != "/data" or url.query:
        raise DeviceReadError(f"Invalid device address {ip!r}.", reason="address")
    if url.port is not None and not 0 < url.port <= 65535:
        raise DeviceReadError(f"Invalid device port in {ip!r}.", reason="address")
    return url


class DeviceReadingSource:
    """Fetches readings from ``GET http://{ip}/data`` with a hard deadline."""

    def __init__(
        self,
        timeout: float = DEVICE_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], int] = _now_millis,
    ) -> None:
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._clock = clock

    async def fetch(self, ip: str) -> SensorReading:
        url = device_url(ip)
        try:
            response = await asyncio.wait_for(self._client.get(url), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise DeviceReadError(
                f"Device at {ip} did not answer within {self.timeout:g}s.", reason="timeout"
            ) from exc
        except httpx.HTTPError as exc:
            raise DeviceReadError(f"Could not reach device at {ip}: {exc}", reason="network") from exc
        except httpx.InvalidURL as exc:
            raise DeviceReadError(f"Invalid device address {ip!r}: {exc}", reason="address") from exc

        if not response.is_success:
            raise DeviceReadError(
                f"Device at {ip} answered with status {response.status_code}.", reason="status"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise DeviceReadError("Device payload is not valid JSON.", reason="payload") from exc
        return parse_device_payload(payload, timestamp=self._clock())

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
