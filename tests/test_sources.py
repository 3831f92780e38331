from __future__ import annotations

import asyncio
import json
import math
import random
import time
from typing import Callable, Iterator

import httpx
import pytest

from models.readings import altitude_from_pressure
from services.sources import (
    DeviceReadError,
    DeviceReadingSource,
    DriftBounds,
    ReadingSimulator,
    device_url,
)

# Step checks allow for float noise in the random walk.
EPSILON = 1e-9


def test_simulated_steps_stay_within_drift_bounds() -> None:
    simulator = ReadingSimulator(rng=random.Random(1234))
    readings = [simulator.read() for _ in range(500)]
    bounds = DriftBounds()

    for previous, current in zip(readings, readings[1:]):
        assert abs(current.temperature - previous.temperature) <= bounds.temperature + EPSILON
        assert abs(current.humidity - previous.humidity) <= bounds.humidity + EPSILON
        assert abs(current.pressure - previous.pressure) <= bounds.pressure + EPSILON


def test_simulator_walks_instead_of_resampling() -> None:
    simulator = ReadingSimulator(temperature=30.0, rng=random.Random(7))

    first = simulator.read()

    assert abs(first.temperature - 30.0) <= 0.15 + EPSILON


def test_simulated_altitude_matches_barometric_formula() -> None:
    simulator = ReadingSimulator(rng=random.Random(99))

    for _ in range(100):
        reading = simulator.read()
        assert math.isclose(
            reading.altitude, altitude_from_pressure(reading.pressure), abs_tol=1e-9
        )


@pytest.mark.parametrize("start", [10.2, 98.8])
def test_simulated_humidity_is_clamped(start: float) -> None:
    simulator = ReadingSimulator(humidity=start, rng=random.Random(5))

    for _ in range(1000):
        reading = simulator.read()
        assert 10.0 <= reading.humidity <= 99.0


def test_simulated_timestamps_never_go_backwards() -> None:
    ticks: Iterator[int] = iter([5_000, 6_000, 4_000, 7_000])
    simulator = ReadingSimulator(rng=random.Random(3), clock=lambda: next(ticks))

    stamps = [simulator.read().timestamp for _ in range(4)]

    assert stamps == [5_000, 6_000, 6_000, 7_000]


def _device(handler: Callable, timeout: float = 3.0) -> DeviceReadingSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DeviceReadingSource(timeout=timeout, client=client, clock=lambda: 42)


async def _fetch_once(source: DeviceReadingSource, ip: str = "10.0.0.5"):
    try:
        return await source.fetch(ip)
    finally:
        await source._client.aclose()


def test_device_reading_derives_altitude_when_missing() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"temperature": 25.5, "humidity": 60, "pressure": 1012.1})

    reading = asyncio.run(_fetch_once(_device(handler)))

    assert seen == ["http://10.0.0.5/data"]
    assert reading.timestamp == 42
    assert reading.temperature == 25.5
    assert reading.humidity == 60.0
    assert reading.pressure == 1012.1
    assert abs(reading.altitude - 9.4) < 0.5


@pytest.mark.parametrize("altitude", [120.3, 0])
def test_device_reading_keeps_measured_altitude(altitude: float) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"temperature": "21.0", "humidity": 45.5, "pressure": 1000.0, "altitude": altitude},
        )

    reading = asyncio.run(_fetch_once(_device(handler)))

    assert reading.temperature == 21.0
    assert reading.altitude == altitude


def test_device_error_status_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="busy")

    with pytest.raises(DeviceReadError) as excinfo:
        asyncio.run(_fetch_once(_device(handler)))

    assert excinfo.value.reason == "status"


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        json.dumps([1, 2, 3]).encode(),
        json.dumps({"temperature": 20.0, "humidity": 50.0}).encode(),
        json.dumps({"temperature": "warm", "humidity": 50.0, "pressure": 1013.0}).encode(),
    ],
)
def test_device_malformed_payload_raises(body: bytes) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body)

    with pytest.raises(DeviceReadError) as excinfo:
        asyncio.run(_fetch_once(_device(handler)))

    assert excinfo.value.reason == "payload"


def test_device_network_failure_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DeviceReadError) as excinfo:
        asyncio.run(_fetch_once(_device(handler)))

    assert excinfo.value.reason == "network"


@pytest.mark.parametrize("ip", ["[::1", "10.0.0.1:99999", "10.0.0.1:0", "", "10.0.0.1/admin"])
def test_unusable_device_address_is_rejected_without_a_request(ip: str) -> None:
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={})

    with pytest.raises(DeviceReadError) as excinfo:
        asyncio.run(_fetch_once(_device(handler), ip=ip))

    assert excinfo.value.reason == "address"
    assert requests == []


def test_device_url_accepts_host_and_port() -> None:
    assert str(device_url("192.168.1.100")) == "http://192.168.1.100/data"
    assert str(device_url(" sensor.local:8080 ")) == "http://sensor.local:8080/data"


def test_stalled_device_times_out_after_three_seconds() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(60)
        return httpx.Response(200, json={})

    started = time.monotonic()
    with pytest.raises(DeviceReadError) as excinfo:
        asyncio.run(_fetch_once(_device(handler)))
    elapsed = time.monotonic() - started

    assert excinfo.value.reason == "timeout"
    assert 2.5 <= elapsed < 3.5


def test_device_owned_client_is_closed() -> None:
    async def scenario() -> bool:
        source = DeviceReadingSource()
        await source.aclose()
        return source._client.is_closed

    assert asyncio.run(scenario()) is True
