from __future__ import annotations

import json

import pytest

from services.ingestion import (
    IngestionError,
    UnsupportedFormatError,
    parse_csv,
    parse_json,
    parse_upload,
    unescape_header,
)

CSV_HEADER = (
    "date,time,x-edge-location,sc-bytes,c-ip,cs-method,cs-uri-stem,sc-status,"
    "cs\\(Referer\\),cs\\(User-Agent\\)\n"
)


def _entry(**overrides) -> dict:
    entry = {
        "date": "2024-01-01",
        "time": "10:00:00",
        "x-edge-location": "ATH50-C1",
        "sc-bytes": 512,
        "c-ip": "10.0.0.1",
        "cs-method": "GET",
        "cs-uri-stem": "/index.html",
        "sc-status": 200,
        "cs(Referer)": "-",
        "cs(User-Agent)": "curl/8.4.0",
    }
    entry.update(overrides)
    return entry


def test_unescape_header() -> None:
    assert unescape_header("cs\\(Referer\\)") == "cs(Referer)"
    assert unescape_header(" cs-method ") == "cs-method"


def test_parse_json_array() -> None:
    payload = json.dumps([_entry(), _entry(**{"sc-status": "404", "cs(Referer)": ""})])

    records = parse_json(payload)

    assert len(records) == 2
    first, second = records
    assert first.edge_location == "ATH50-C1"
    assert first.bytes_sent == 512
    assert first.status_code == 200
    assert first.referer == "-"
    assert second.status_code == 404
    assert second.referer is None


def test_parse_json_logs_object() -> None:
    payload = json.dumps({"logs": [_entry()], "metadata": {"fetchedAt": "2024-01-01T00:00:00Z"}})

    records = parse_json(payload.encode("utf-8"))

    assert [record.client_ip for record in records] == ["10.0.0.1"]


def test_parse_json_without_logs_fails() -> None:
    with pytest.raises(ValueError, match="missing logs data"):
        parse_json(json.dumps({"metadata": {}}))


def test_parse_json_invalid_document() -> None:
    with pytest.raises(ValueError, match="Invalid JSON"):
        parse_json("{not json")


def test_parse_csv_unescapes_headers_and_types_fields() -> None:
    body = CSV_HEADER + (
        "2024-01-01,10:00:00,ATH50-C1,512,10.0.0.1,GET,/a,200,https://example.com/,Mozilla/5.0 Chrome/1\n"
        "\n"
        "2024-01-01,11:00:00,FRA56-P1,0,10.0.0.2,POST,/b,500,,\n"
    )

    records = parse_csv(body)

    assert len(records) == 2
    assert records[0].referer == "https://example.com/"
    assert records[0].user_agent == "Mozilla/5.0 Chrome/1"
    assert records[1].bytes_sent == 0
    assert records[1].status_code == 500
    assert records[1].referer is None
    assert records[1].user_agent is None


def test_parse_csv_missing_columns() -> None:
    with pytest.raises(ValueError, match="missing required columns: c-ip"):
        parse_csv("date,time,x-edge-location,sc-bytes,cs-method,cs-uri-stem,sc-status\n")


def test_parse_csv_collects_every_row_error() -> None:
    body = CSV_HEADER + (
        "2024-01-01,10:00:00,ATH50-C1,512,10.0.0.1,GET,/a,200,,\n"
        "2024-01-01,10:00:00,ATH50-C1,lots,10.0.0.1,GET,/a,200,,\n"
        "2024-01-01,not-a-time,ATH50-C1,1,10.0.0.1,GET,/a,200,,\n"
        "2024-01-01,10:00:00,,1,10.0.0.1,GET,/a,200,,\n"
        "2024-01-01,10:00:00,ATH50-C1,-5,10.0.0.1,GET,/a,200,,\n"
    )

    with pytest.raises(IngestionError) as excinfo:
        parse_csv(body)

    errors = excinfo.value.errors
    assert [error.row_number for error in errors] == [3, 4, 5, 6]
    assert [error.reason for error in errors] == [
        "invalid sc-bytes",
        "invalid timestamp",
        "missing x-edge-location",
        "negative sc-bytes",
    ]


def test_parse_upload_dispatches_on_content_type_and_extension() -> None:
    payload = json.dumps([_entry()]).encode("utf-8")
    csv_payload = (CSV_HEADER + "2024-01-01,10:00:00,ATH50-C1,1,10.0.0.1,GET,/a,200,,\n").encode("utf-8")

    assert len(parse_upload(payload, filename="logs.bin", content_type="application/json")) == 1
    assert len(parse_upload(payload, filename="logs.json")) == 1
    assert len(parse_upload(csv_payload, filename="export.CSV")) == 1
    assert len(parse_upload(csv_payload, content_type="text/csv; charset=utf-8")) == 1


def test_parse_upload_rejects_empty_and_unknown() -> None:
    with pytest.raises(ValueError, match="Uploaded file is empty."):
        parse_upload(b"", filename="logs.json")
    with pytest.raises(UnsupportedFormatError):
        parse_upload(b"hello", filename="notes.txt", content_type="text/plain")
