"""Natural-language environment assessment from a Gemini text model."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Optional

import httpx

from models.readings import SensorReading, Thresholds
from settings import get_settings

logger = logging.getLogger(__name__)

ANALYSIS_UNAVAILABLE_MESSAGE = (
    "AI analysis is currently unavailable. Please check the API key configuration."
)
ANALYSIS_EMPTY_MESSAGE = "Unable to generate an analysis report."


class AnalysisError(Exception):
    """Raised internally when the text service gives no usable answer."""


def build_prompt(reading: SensorReading, thresholds: Thresholds) -> str:
    return (
        "You are an assistant specialised in smart homes and indoor environmental health.\n"
        "\n"
        "Current sensor readings:\n"
        f"- Temperature: {reading.temperature:.1f}°C "
        f"(target range: {thresholds.temp_min:g}-{thresholds.temp_max:g}°C)\n"
        f"- Humidity: {reading.humidity:.1f}% "
        f"(target range: {thresholds.humid_min:g}-{thresholds.humid_max:g}%)\n"
        f"- Pressure: {reading.pressure:.1f} hPa\n"
        f"- Altitude (approx.): {reading.altitude:.1f}m\n"
        "\n"
        "Give a concise analysis in at most 3 sentences:\n"
        "1. Is the current environment comfortable?\n"
        "2. Are there health risks (e.g. mould, dehydration, heat stroke)?\n"
        '3. Suggest one practical action (e.g. "open a window", "turn on a humidifier").'
    )


def _extract_text(payload: Any) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    texts = [part.get("text", "") for part in parts if isinstance(part, dict)]
    return "".join(texts).strip()


class AnalysisClient:
    """Single-shot ``generateContent`` caller that never raises to its caller."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def analyze(self, reading: SensorReading, thresholds: Thresholds) -> str:
        try:
            return await self._generate(build_prompt(reading, thresholds))
        except AnalysisError as exc:
            logger.warning("Analysis returned no text: %s", exc, extra={"model": self.model})
            return ANALYSIS_EMPTY_MESSAGE
        except Exception:  # noqa: BLE001 - analysis is advisory only
            logger.exception("Environment analysis failed", extra={"model": self.model})
            return ANALYSIS_UNAVAILABLE_MESSAGE

    async def _generate(self, prompt: str) -> str:
        if not self.api_key:
            raise RuntimeError("No analysis API key configured.")
        response = await self._client.post(
            f"/models/{self.model}:generateContent",
            headers={"x-goog-api-key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
        )
        response.raise_for_status()
        text = _extract_text(response.json())
        if not text:
            raise AnalysisError("response contained no candidate text")
        return text

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


@lru_cache
def build_default_analysis_client() -> AnalysisClient:
    settings = get_settings()
    return AnalysisClient(
        api_key=settings.analysis_api_key,
        model=settings.analysis_model,
        base_url=settings.analysis_base_url,
        timeout=settings.analysis_timeout,
    )
