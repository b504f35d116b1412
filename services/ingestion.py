"""Decoding of uploaded JSON and CSV log exports into records."""

from __future__ import annotations

import csv
import io
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from models.records import LogRecord

logger = logging.getLogger(__name__)

FIELD_DATE = "date"
FIELD_TIME = "time"
FIELD_EDGE_LOCATION = "x-edge-location"
FIELD_BYTES = "sc-bytes"
FIELD_CLIENT_IP = "c-ip"
FIELD_METHOD = "cs-method"
FIELD_URI = "cs-uri-stem"
FIELD_STATUS = "sc-status"
FIELD_REFERER = "cs(Referer)"
FIELD_USER_AGENT = "cs(User-Agent)"

REQUIRED_FIELDS = (
    FIELD_DATE,
    FIELD_TIME,
    FIELD_EDGE_LOCATION,
    FIELD_BYTES,
    FIELD_CLIENT_IP,
    FIELD_METHOD,
    FIELD_URI,
    FIELD_STATUS,
)

JSON_CONTENT_TYPES = {"application/json", "text/json"}
CSV_CONTENT_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel"}

_ESCAPED_PAREN = re.compile(r"\\([()])")


@dataclass(frozen=True)
class RecordError:
    """Details about a row that failed validation."""

    row_number: int
    reason: str


class IngestionError(ValueError):
    """Raised when one or more rows of an upload are invalid."""

    def __init__(self, errors: List[RecordError]) -> None:
        self.errors = list(errors)
        super().__init__(f"{len(self.errors)} invalid record(s) in upload.")


class UnsupportedFormatError(ValueError):
    """Raised when an upload is neither JSON nor CSV."""


def unescape_header(header: str) -> str:
    r"""Turn ``cs\(Referer\)`` into ``cs(Referer)``."""
    return _ESCAPED_PAREN.sub(r"\1", header.strip())


def parse_json(payload: bytes | str) -> List[LogRecord]:
    """Decode a JSON array of records, or an object carrying a ``logs`` array."""
    text = payload.decode("utf-8-sig") if isinstance(payload, bytes) else payload
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc.msg}") from exc

    if isinstance(data, dict):
        data = data.get("logs")
    if not isinstance(data, list):
        raise ValueError("Invalid file format: missing logs data")

    # Row numbers are 1-based positions in the array.
    return build_records(enumerate(data, start=1))


def parse_csv(payload: bytes | str) -> List[LogRecord]:
    """Decode a CSV export whose header row names the log fields."""
    text = payload.decode("utf-8-sig") if isinstance(payload, bytes) else payload
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        raise ValueError("CSV file is missing a header row.")
    reader.fieldnames = [unescape_header(name) for name in reader.fieldnames]

    missing = sorted(set(REQUIRED_FIELDS) - set(reader.fieldnames))
    if missing:
        raise ValueError(f"CSV missing required columns: {', '.join(missing)}")

    rows: list[Tuple[int, Mapping[str, Any]]] = []
    for row_number, row in enumerate(reader, start=2):
        if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
            continue
        rows.append((row_number, row))
    return build_records(rows)


def parse_upload(
    payload: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> List[LogRecord]:
    """Pick a decoder from the content type, falling back to the file extension."""
    if not payload:
        raise ValueError("Uploaded file is empty.")

    media_type = (content_type or "").split(";")[0].strip().lower()
    suffix = Path(filename or "").suffix.lower()

    if media_type in JSON_CONTENT_TYPES or suffix == ".json":
        records = parse_json(payload)
    elif media_type in CSV_CONTENT_TYPES or suffix == ".csv":
        records = parse_csv(payload)
    else:
        raise UnsupportedFormatError(
            f"Unsupported file type {media_type or suffix or 'unknown'!r}; expected JSON or CSV."
        )

    logger.info("Decoded upload", extra={"filename": filename, "record_count": len(records)})
    return records


def build_records(rows: Iterable[Tuple[int, Any]]) -> List[LogRecord]:
    """Validate raw rows, failing the whole batch if any row is invalid."""
    records: list[LogRecord] = []
    errors: list[RecordError] = []

    for row_number, row in rows:
        try:
            records.append(_build_record(row))
        except ValueError as exc:
            errors.append(RecordError(row_number=row_number, reason=str(exc)))
            logger.debug("Rejected row", extra={"row_number": row_number, "reason": str(exc)})

    if errors:
        logger.warning("Upload rejected", extra={"error_count": len(errors)})
        raise IngestionError(errors)
    return records


def _build_record(row: Any) -> LogRecord:
    if not isinstance(row, Mapping):
        raise ValueError("record is not an object")

    for name in REQUIRED_FIELDS:
        if _text(row.get(name)) is None:
            raise ValueError(f"missing {name}")

    record = LogRecord(
        date=_text(row[FIELD_DATE]),
        time=_text(row[FIELD_TIME]),
        edge_location=_text(row[FIELD_EDGE_LOCATION]),
        bytes_sent=_integer(row[FIELD_BYTES], FIELD_BYTES),
        client_ip=_text(row[FIELD_CLIENT_IP]),
        method=_text(row[FIELD_METHOD]),
        uri_path=_text(row[FIELD_URI]),
        status_code=_integer(row[FIELD_STATUS], FIELD_STATUS),
        referer=_text(row.get(FIELD_REFERER)),
        user_agent=_text(row.get(FIELD_USER_AGENT)),
    )
    if record.bytes_sent < 0:
        raise ValueError(f"negative {FIELD_BYTES}")

    try:
        record.timestamp
    except ValueError:
        raise ValueError("invalid timestamp") from None
    return record


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    candidate = str(value).strip()
    return candidate or None


def _integer(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"invalid {name}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValueError(f"invalid {name}") from None
