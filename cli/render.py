from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import typer

_STATUS_COLORS = {
    "connected-mock": typer.colors.BLUE,
    "connected-real": typer.colors.GREEN,
    "connecting": typer.colors.YELLOW,
    "error": typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fmt(value: Optional[float], unit: str = "") -> str:
    if value is None:
        return "-"
    return f"{value:.1f}{unit}"


def format_time(timestamp: Optional[int]) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")


def format_reading(reading: Dict[str, Any]) -> str:
    return (
        f"{format_time(reading.get('timestamp'))}  "
        f"T={_fmt(reading.get('temperature'), '°C')}  "
        f"H={_fmt(reading.get('humidity'), '%')}  "
        f"P={_fmt(reading.get('pressure'), 'hPa')}  "
        f"Alt={_fmt(reading.get('altitude'), 'm')}"
    )


def render_status(payload: Dict[str, Any]) -> None:
    status = payload.get("status")
    echo_heading("Connection")
    typer.secho(f"status: {status}", fg=_STATUS_COLORS.get(status))
    echo_key_values(
        [
            ("device_ip", payload.get("device_ip")),
            ("polling", payload.get("polling")),
        ]
    )

    typer.echo()
    echo_heading("Current Reading")
    current = payload.get("current")
    if current:
        typer.echo(format_reading(current))
    else:
        typer.echo("No reading yet.")

    alerts = payload.get("alerts") or {}
    if alerts.get("has_any_alert"):
        flagged = [
            name
            for name, key in (("temperature", "is_temp_alert"), ("humidity", "is_humid_alert"))
            if alerts.get(key)
        ]
        typer.secho(f"ALERT: {', '.join(flagged)} out of range", fg=typer.colors.RED, bold=True)


def render_readings(readings: List[Dict[str, Any]], empty_message: str = "No data.") -> None:
    if not readings:
        typer.echo(empty_message)
        return
    for reading in readings:
        typer.echo(format_reading(reading))


def render_summary(payload: Dict[str, Any]) -> None:
    echo_heading("History Summary")
    echo_key_values(
        [
            ("count", payload.get("count")),
            ("from", format_time(payload.get("first_timestamp"))),
            ("to", format_time(payload.get("last_timestamp"))),
        ]
    )
    for name, metric in (payload.get("metrics") or {}).items():
        typer.echo(
            f"  - {name}: min={_fmt(metric.get('min_value'))} "
            f"max={_fmt(metric.get('max_value'))} mean={_fmt(metric.get('mean_value'))}"
        )


def render_thresholds(payload: Dict[str, Any]) -> None:
    echo_heading("Thresholds")
    echo_key_values(
        [
            ("temperature", f"{payload.get('temp_min')} .. {payload.get('temp_max')} °C"),
            ("humidity", f"{payload.get('humid_min')} .. {payload.get('humid_max')} %"),
            ("sound_enabled", payload.get("sound_enabled")),
            ("sound_type", payload.get("sound_type")),
        ]
    )


def render_alerts(payload: Dict[str, Any]) -> None:
    state = payload.get("state") or {}
    echo_heading("Alert State")
    echo_key_values(
        [
            ("temperature", "ALERT" if state.get("is_temp_alert") else "ok"),
            ("humidity", "ALERT" if state.get("is_humid_alert") else "ok"),
        ]
    )

    typer.echo()
    echo_heading("Alert Log")
    log = payload.get("log") or []
    if not log:
        typer.echo("No out-of-range readings recorded.")
        return
    for entry in log:
        violations = ", ".join(entry.get("violations") or [])
        typer.echo(f"  - {format_reading(entry.get('reading') or {})}  [{violations}]")
