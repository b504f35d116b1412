from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the dashboard service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def summarize(self, path: Path, query: Optional[str] = None) -> Dict[str, Any]:
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")

        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        params = {"q": query} if query else None
        try:
            with path.open("rb") as handle:
                response = self._client.post(
                    "/summary",
                    files={"file": (path.name, handle, content_type)},
                    params=params,
                )
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
        payload = response.json()
        if not isinstance(payload, dict):
            raise typer.BadParameter("Unexpected response payload when summarizing file.")
        return payload

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            detail = exc.response.json().get("detail")
        except ValueError:
            detail = exc.response.text.strip()
        if isinstance(detail, dict):
            lines = [str(detail.get("message", ""))]
            lines.extend(
                f"  - row {error.get('row_number')}: {error.get('reason')}"
                for error in detail.get("errors") or []
            )
            detail = "\n".join(lines)
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
