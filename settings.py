from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_DEVICE_IP_ENV = "DEVICE_IP"
_POLL_INTERVAL_ENV = "POLL_INTERVAL_SECONDS"
_DEVICE_TIMEOUT_ENV = "DEVICE_TIMEOUT_SECONDS"
_CONNECT_DELAY_ENV = "MOCK_CONNECT_DELAY_SECONDS"
_HISTORY_CAPACITY_ENV = "HISTORY_CAPACITY"
_HISTORICAL_LATENCY_ENV = "HISTORICAL_LATENCY_SECONDS"
_HISTORICAL_TIMEOUT_ENV = "HISTORICAL_TIMEOUT_SECONDS"
_API_KEY_ENV = "GEMINI_API_KEY"
_LEGACY_API_KEY_ENV = "API_KEY"
_ANALYSIS_MODEL_ENV = "ANALYSIS_MODEL"
_ANALYSIS_BASE_URL_ENV = "ANALYSIS_BASE_URL"
_ANALYSIS_TIMEOUT_ENV = "ANALYSIS_TIMEOUT_SECONDS"
_SIMULATION_SEED_ENV = "SIMULATION_SEED"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    device_ip: str
    poll_interval: float
    device_timeout: float
    mock_connect_delay: float
    history_capacity: int
    historical_latency: float
    historical_timeout: float
    analysis_api_key: Optional[str]
    analysis_model: str
    analysis_base_url: str
    analysis_timeout: float
    simulation_seed: Optional[int]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_float_env(name: str, default: float, allow_zero: bool = False) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if parsed > 0 or (allow_zero and parsed == 0):
        return parsed
    return default


def _read_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_seed() -> Optional[int]:
    value = _read_optional_env(_SIMULATION_SEED_ENV, None)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _read_api_key() -> Optional[str]:
    key = _read_optional_env(_API_KEY_ENV, None)
    if key is None:
        key = _read_optional_env(_LEGACY_API_KEY_ENV, None)
    return key


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        device_ip=_read_str_env(_DEVICE_IP_ENV, "192.168.1.100"),
        poll_interval=_read_float_env(_POLL_INTERVAL_ENV, 2.0),
        device_timeout=_read_float_env(_DEVICE_TIMEOUT_ENV, 3.0),
        mock_connect_delay=_read_float_env(_CONNECT_DELAY_ENV, 0.8, allow_zero=True),
        history_capacity=_read_int_env(_HISTORY_CAPACITY_ENV, 50),
        historical_latency=_read_float_env(_HISTORICAL_LATENCY_ENV, 0.8, allow_zero=True),
        historical_timeout=_read_float_env(_HISTORICAL_TIMEOUT_ENV, 10.0),
        analysis_api_key=_read_api_key(),
        analysis_model=_read_str_env(_ANALYSIS_MODEL_ENV, "gemini-2.5-flash"),
        analysis_base_url=_read_str_env(
            _ANALYSIS_BASE_URL_ENV, "https://generativelanguage.googleapis.com/v1beta"
        ).rstrip("/"),
        analysis_timeout=_read_float_env(_ANALYSIS_TIMEOUT_ENV, 15.0),
        simulation_seed=_read_seed(),
        log_level=_read_log_level("INFO"),
    )
