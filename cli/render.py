from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import typer

NO_DATA = "No data"

_BYTE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_bytes(value: Optional[int]) -> str:
    """Human readable size using 1024 steps, e.g. ``1536`` -> ``1.5 KB``."""
    if value is None:
        return NO_DATA
    if value <= 0:
        return "0 Bytes"
    scaled = float(value)
    exponent = 0
    while scaled >= 1024 and exponent < len(_BYTE_UNITS) - 1:
        scaled /= 1024
        exponent += 1
    number = f"{scaled:.2f}".rstrip("0").rstrip(".")
    return f"{number} {_BYTE_UNITS[exponent]}"


def format_number(value: Optional[int]) -> str:
    return NO_DATA if value is None else f"{value:,}"


def format_time_range(time_range: Optional[Dict[str, str]]) -> str:
    if not time_range:
        return NO_DATA
    start = datetime.fromisoformat(time_range["start"].replace("Z", "+00:00"))
    end = datetime.fromisoformat(time_range["end"].replace("Z", "+00:00"))
    return f"{start:%Y-%m-%d %H:%M} - {end:%Y-%m-%d %H:%M} UTC"


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def echo_ranked(title: str, entries: Optional[List[Dict[str, Any]]]) -> None:
    typer.echo()
    echo_heading(title)
    if not entries:
        typer.echo(NO_DATA)
        return
    width = max(len(format_number(entry.get("count"))) for entry in entries)
    for entry in entries:
        typer.echo(f"  {format_number(entry.get('count')):>{width}}  {entry.get('label')}")


def render_summary(payload: Dict[str, Any]) -> None:
    echo_heading("Summary")
    echo_key_values(
        [
            ("total_requests", format_number(payload.get("totalRequests"))),
            ("unique_visitors", format_number(payload.get("uniqueVisitorCount"))),
            ("data_transferred", format_bytes(payload.get("totalBytesTransferred"))),
            ("time_range", format_time_range(payload.get("timeRange"))),
        ]
    )

    typer.echo()
    echo_heading("Requests Over Time")
    buckets = payload.get("requestsOverTime") or []
    if buckets:
        for bucket in buckets:
            by_status = " ".join(
                f"{name}={count}" for name, count in (bucket.get("byStatus") or {}).items()
            )
            typer.echo(f"  {bucket.get('key')}  {bucket.get('totalCount'):>6}  {by_status}")
    else:
        typer.echo(NO_DATA)

    typer.echo()
    echo_heading("Geo Distribution")
    geo = payload.get("geoDistribution")
    if geo:
        for point in geo.get("points") or []:
            typer.echo(
                f"  {point.get('locationCode')} ({point.get('lat')}, {point.get('lng')}): "
                f"{format_number(point.get('count'))}"
            )
        typer.echo(f"  total: {format_number(geo.get('total'))}")
    else:
        typer.echo(NO_DATA)

    echo_ranked("Top Paths", payload.get("topPaths"))
    echo_ranked("Top Referers", payload.get("topReferers"))
    echo_ranked("Top User Agents", payload.get("topUserAgents"))
    echo_ranked("Edge Locations", payload.get("topEdgeLocations"))
    echo_ranked("Browsers", payload.get("browserDistribution"))
    echo_ranked("Status Codes", payload.get("statusCodes"))
