"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True, slots=True)
class LogRecord:
    """A single edge access log entry."""

    date: str
    time: str
    edge_location: str
    bytes_sent: int
    client_ip: str
    method: str
    uri_path: str
    status_code: int
    referer: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def timestamp(self) -> datetime:
        """Combine ``date`` and ``time`` into a UTC timestamp."""
        if not self.date or not self.time:
            raise ValueError("Record is missing date or time.")
        candidate = f"{self.date.strip()}T{self.time.strip()}"
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise ValueError(f"Invalid timestamp {candidate!r}") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
