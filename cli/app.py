from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    format_reading,
    render_alerts,
    render_readings,
    render_status,
    render_summary,
    render_thresholds,
)
from models.readings import SoundType


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the environment monitor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
connect_app = typer.Typer(help="Start polling a reading source.")
app.add_typer(connect_app, name="connect")


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Monitor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API response.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show connection state, the latest reading and alert flags."""
    state = _get_state(ctx)
    render_status(state.client.get_status())


@connect_app.command("mock")
def connect_mock_command(ctx: typer.Context) -> None:
    """Poll the built-in simulator."""
    state = _get_state(ctx)
    typer.echo("Connecting to simulator ...")
    render_status(state.client.connect_mock())


@connect_app.command("real")
def connect_real_command(
    ctx: typer.Context,
    ip: Optional[str] = typer.Argument(None, help="Sensor device address, e.g. 192.168.1.100."),
) -> None:
    """Probe a sensor device and poll it."""
    state = _get_state(ctx)
    typer.echo(f"Connecting to device {ip or '(configured default)'} ...")
    payload = state.client.connect_real(ip)
    render_status(payload)
    if payload.get("status") == "error":
        raise typer.Exit(code=1)


@app.command("disconnect")
def disconnect_command(ctx: typer.Context) -> None:
    """Stop polling."""
    state = _get_state(ctx)
    payload = state.client.disconnect()
    typer.echo(f"status: {payload.get('status')}")


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    count: int = typer.Option(0, "--count", "-n", min=0, help="Stop after N updates (0 = forever)."),
    interval: Optional[float] = typer.Option(None, "--interval", help="Seconds between updates."),
) -> None:
    """Print the current reading repeatedly."""
    state = _get_state(ctx)
    delay = interval if interval is not None else state.config.watch_interval
    shown = 0
    while True:
        payload = state.client.get_status()
        current = payload.get("current")
        line = format_reading(current) if current else "No reading yet."
        alert = (payload.get("alerts") or {}).get("has_any_alert")
        typer.secho(
            f"[{payload.get('status')}] {line}",
            fg=typer.colors.RED if alert else None,
        )
        shown += 1
        if count and shown >= count:
            return
        time.sleep(delay)


@app.command("history")
def history_command(
    ctx: typer.Context,
    summary: bool = typer.Option(False, "--summary", help="Show min/max/mean instead of rows."),
) -> None:
    """Show the rolling reading history."""
    state = _get_state(ctx)
    if summary:
        render_summary(state.client.get_summary())
        return
    render_readings(state.client.get_history(), empty_message="History is empty.")


@app.command("thresholds")
def thresholds_command(
    ctx: typer.Context,
    temp_min: Optional[float] = typer.Option(None, "--temp-min"),
    temp_max: Optional[float] = typer.Option(None, "--temp-max"),
    humid_min: Optional[float] = typer.Option(None, "--humid-min"),
    humid_max: Optional[float] = typer.Option(None, "--humid-max"),
    sound_enabled: Optional[bool] = typer.Option(None, "--sound/--no-sound"),
    sound_type: Optional[SoundType] = typer.Option(None, "--sound-type"),
) -> None:
    """Show alert thresholds, updating any that are given."""
    state = _get_state(ctx)
    changes: Dict[str, Any] = {
        key: value
        for key, value in (
            ("temp_min", temp_min),
            ("temp_max", temp_max),
            ("humid_min", humid_min),
            ("humid_max", humid_max),
            ("sound_enabled", sound_enabled),
            ("sound_type", sound_type.value if sound_type else None),
        )
        if value is not None
    }
    current = state.client.get_thresholds()
    if changes:
        current = state.client.put_thresholds({**current, **changes})
        typer.secho("Thresholds updated.", fg=typer.colors.GREEN)
    render_thresholds(current)


@app.command("alerts")
def alerts_command(ctx: typer.Context) -> None:
    """Show alert flags and the log of out-of-range readings."""
    state = _get_state(ctx)
    render_alerts(state.client.get_alerts())


@app.command("analyze")
def analyze_command(ctx: typer.Context) -> None:
    """Ask the text model for an assessment of the current environment."""
    state = _get_state(ctx)
    typer.echo("Analysing ...")
    typer.echo(state.client.analyze())


@app.command("historical")
def historical_command(
    ctx: typer.Context,
    day: str = typer.Argument(..., help="Calendar date, YYYY-MM-DD."),
) -> None:
    """Show a day of half-hourly readings."""
    state = _get_state(ctx)
    render_readings(state.client.get_historical(day), empty_message=f"No data for {day}.")


@app.command("sound")
def sound_command(
    ctx: typer.Context,
    sound_type: SoundType = typer.Argument(..., help="Pattern to preview."),
) -> None:
    """Play an alert pattern on the monitor host."""
    state = _get_state(ctx)
    payload = state.client.preview_sound(sound_type.value)
    if payload.get("played"):
        typer.echo(f"Played {sound_type.value}.")
    else:
        typer.secho("Audio output is unavailable on the monitor host.", fg=typer.colors.YELLOW)
