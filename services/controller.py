"""Connection state machine and periodic reading acquisition."""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
from functools import lru_cache
from typing import Awaitable, Callable, Optional

from models.readings import AlertState, ConnectionStatus, SensorReading, Thresholds
from services.alerts import AlertMonitor, evaluate_alerts
from services.history import HistoryBuffer
from services.sound import SoundNotifier
from services.sources import DeviceReadError, DeviceReadingSource, ReadingSimulator
from settings import get_settings

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[SensorReading]]


class PollingController:
    """Owns the connection status, the single polling task, and the reading history.

    Every connect or disconnect cancels the previous polling task before doing
    anything else, so at most one ticker ever mutates the history. A connect
    request that is overtaken by a newer one (or by ``disconnect``) while it is
    still waiting leaves the state alone.
    """

    def __init__(
        self,
        simulator: ReadingSimulator,
        device: DeviceReadingSource,
        history: HistoryBuffer,
        notifier: SoundNotifier,
        thresholds: Optional[Thresholds] = None,
        device_ip: str = "192.168.1.100",
        poll_interval: float = 2.0,
        connect_delay: float = 0.8,
    ) -> None:
        self.simulator = simulator
        self.device = device
        self.history = history
        self.notifier = notifier
        self.device_ip = device_ip
        self.poll_interval = poll_interval
        self.connect_delay = connect_delay
        self._thresholds = thresholds or Thresholds()
        self._status = ConnectionStatus.disconnected
        self._current: Optional[SensorReading] = None
        self._alerts = AlertMonitor(on_onset=self._on_alert_onset)
        self._task: Optional[asyncio.Task[None]] = None
        self._generation = 0

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def current(self) -> Optional[SensorReading]:
        return self._current

    @property
    def thresholds(self) -> Thresholds:
        return self._thresholds

    @property
    def alert_state(self) -> AlertState:
        return evaluate_alerts(self._current, self._thresholds)

    @property
    def is_polling(self) -> bool:
        return self._task is not None and not self._task.done()

    async def connect_mock(self) -> ConnectionStatus:
        generation = await self._begin_connect()
        if self.connect_delay > 0:
            await asyncio.sleep(self.connect_delay)
        if generation != self._generation:
            return self._status
        self._set_status(ConnectionStatus.connected_mock)
        self._start_polling(self._read_simulated)
        return self._status

    async def connect_real(self, ip: Optional[str] = None) -> ConnectionStatus:
        if ip:
            self.device_ip = ip
        target = self.device_ip
        generation = await self._begin_connect()
        try:
            await self.device.fetch(target)
        except DeviceReadError as exc:
            if generation == self._generation:
                logger.warning(
                    "Device probe failed: %s",
                    exc,
                    extra={"device_ip": target, "reason": exc.reason},
                )
                self._set_status(ConnectionStatus.error)
            return self._status
        if generation != self._generation:
            return self._status
        self._set_status(ConnectionStatus.connected_real)
        self._start_polling(lambda: self.device.fetch(target))
        return self._status

    async def disconnect(self) -> ConnectionStatus:
        self._generation += 1
        was_polling = self.is_polling
        await self._cancel_polling()
        if was_polling:
            logger.info("Polling stopped", extra={"reading_count": len(self.history)})
        self._set_status(ConnectionStatus.disconnected)
        return self._status

    def update_thresholds(self, thresholds: Thresholds) -> AlertState:
        """Apply new thresholds; takes effect from the current reading onward."""
        self._thresholds = thresholds
        return self._evaluate()

    async def aclose(self) -> None:
        try:
            await self.disconnect()
            await self.device.aclose()
        finally:
            self.notifier.close()

    async def _begin_connect(self) -> int:
        self._generation += 1
        generation = self._generation
        await self._cancel_polling()
        self._set_status(ConnectionStatus.connecting)
        return generation

    async def _cancel_polling(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _start_polling(self, fetch: Fetcher) -> None:
        self._task = asyncio.create_task(self._poll(fetch))

    async def _poll(self, fetch: Fetcher) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while await self._tick(fetch):
            next_tick += self.poll_interval
            await asyncio.sleep(max(0.0, next_tick - loop.time()))

    async def _tick(self, fetch: Fetcher) -> bool:
        try:
            reading = await fetch()
        except DeviceReadError as exc:
            logger.warning(
                "Polling stopped after a failed reading: %s",
                exc,
                extra={"device_ip": self.device_ip, "reason": exc.reason},
            )
            self._set_status(ConnectionStatus.error)
            return False
        self._record(reading)
        return True

    async def _read_simulated(self) -> SensorReading:
        return self.simulator.read()

    def _record(self, reading: SensorReading) -> None:
        # A wall clock stepping backwards must not reorder the history.
        if self._current is not None and reading.timestamp < self._current.timestamp:
            reading = dataclasses.replace(reading, timestamp=self._current.timestamp)
        self.history.push(reading)
        self._current = reading
        self._evaluate()

    def _evaluate(self) -> AlertState:
        state = evaluate_alerts(self._current, self._thresholds)
        self._alerts.observe(state)
        return state

    def _on_alert_onset(self, state: AlertState) -> None:
        logger.info(
            "Alert raised (temperature=%s, humidity=%s)",
            state.is_temp_alert,
            state.is_humid_alert,
        )
        self.notifier.notify(self._thresholds)

    def _set_status(self, status: ConnectionStatus) -> None:
        if status is not self._status:
            logger.info("Connection status changed", extra={"status": status})
        self._status = status


@lru_cache
def build_default_controller() -> PollingController:
    """Factory that wires the controller from environment settings."""
    settings = get_settings()
    return PollingController(
        simulator=ReadingSimulator.seeded(settings.simulation_seed),
        device=DeviceReadingSource(timeout=settings.device_timeout),
        history=HistoryBuffer(capacity=settings.history_capacity),
        notifier=SoundNotifier(),
        device_ip=settings.device_ip,
        poll_interval=settings.poll_interval,
        connect_delay=settings.mock_connect_delay,
    )
