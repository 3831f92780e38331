from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the monitor service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def get_status(self) -> Dict[str, Any]:
        return self._request("GET", "/status")

    def connect_mock(self) -> Dict[str, Any]:
        return self._request("POST", "/connect/mock")

    def connect_real(self, ip: Optional[str]) -> Dict[str, Any]:
        return self._request("POST", "/connect/real", json={"ip": ip})

    def disconnect(self) -> Dict[str, Any]:
        return self._request("POST", "/disconnect")

    def get_history(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/readings/history")

    def get_summary(self) -> Dict[str, Any]:
        return self._request("GET", "/readings/summary")

    def get_thresholds(self) -> Dict[str, Any]:
        return self._request("GET", "/thresholds")

    def put_thresholds(self, thresholds: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", "/thresholds", json=thresholds)

    def get_alerts(self) -> Dict[str, Any]:
        return self._request("GET", "/alerts")

    def analyze(self) -> str:
        payload = self._request("POST", "/analysis")
        text = payload.get("analysis")
        if not isinstance(text, str):
            raise typer.BadParameter("Unexpected response payload from analysis.")
        return text

    def get_historical(self, day: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/history/{day}")

    def preview_sound(self, sound_type: str) -> Dict[str, Any]:
        return self._request("POST", f"/sound/{sound_type}")

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
