from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional

import typer

from app.schemas import SummaryResponse
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_summary
from logging_config import configure_logging
from services.aggregator import AggregationError
from services.ingestion import IngestionError
from services.session import load_session


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Summaries of CDN edge access logs, computed locally or by the dashboard service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        _fail("CLI state is uninitialized.")
    return state


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _emit(payload: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(payload, indent=2))
    else:
        render_summary(payload)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the API before giving up.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(log_level.upper() if log_level else None, force=True)
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("summarize")
def summarize_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="JSON or CSV log export."),
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Only summarize matching records."),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON."),
) -> None:
    """Aggregate a log export locally."""
    try:
        session = load_session(file.read_bytes(), filename=file.name)
        summary = session.filter(query)
    except IngestionError as exc:
        details = "\n".join(f"  - row {e.row_number}: {e.reason}" for e in exc.errors)
        _fail(f"{exc}\n{details}")
    except AggregationError as exc:
        _fail(f"Aggregation failed: {exc}")
    except ValueError as exc:
        _fail(str(exc))

    payload = SummaryResponse.from_summary(summary).model_dump(mode="json", by_alias=True)
    _emit(payload, as_json)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="JSON or CSV log export."),
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Only summarize matching records."),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON."),
) -> None:
    """Send a log export to the dashboard service and show its summary."""
    state = _get_state(ctx)
    typer.echo(f"Uploading {file} to {state.config.base_url} ...", err=True)
    payload = state.client.summarize(file, query=query)
    _emit(payload, as_json)
