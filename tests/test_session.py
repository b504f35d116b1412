from __future__ import annotations

import json
from typing import List

from models.records import LogRecord
from services.aggregator import Aggregator
from services.search import SubstringRecordSearch
from services.session import DashboardSession, load_session


def _record(path: str, user_agent: str = "curl/8.4.0", edge: str = "ATH50-C1", referer=None) -> LogRecord:
    return LogRecord(
        date="2024-01-01",
        time="10:00:00",
        edge_location=edge,
        bytes_sent=10,
        client_ip="10.0.0.1",
        method="GET",
        uri_path=path,
        status_code=200,
        referer=referer,
        user_agent=user_agent,
    )


RECORDS = [
    _record("/images/logo.png"),
    _record("/api/users", user_agent="Mozilla/5.0 Firefox/121.0"),
    _record("/index.html", edge="FRA56-P1", referer="https://news.example.org/"),
    _record("/api/orders"),
]


def test_substring_search_matches_any_field_case_insensitively() -> None:
    search = SubstringRecordSearch(RECORDS)

    assert [r.uri_path for r in search.search("API")] == ["/api/users", "/api/orders"]
    assert [r.uri_path for r in search.search("firefox")] == ["/api/users"]
    assert [r.uri_path for r in search.search("fra56")] == ["/index.html"]
    assert [r.uri_path for r in search.search("news.example")] == ["/index.html"]
    assert search.search("nothing-matches") == []


def test_substring_search_requires_every_term() -> None:
    search = SubstringRecordSearch(RECORDS)

    assert [r.uri_path for r in search.search("api curl")] == ["/api/orders"]
    assert len(search.search("   ")) == len(RECORDS)


def test_session_summary_is_cached() -> None:
    session = DashboardSession(RECORDS, aggregator=Aggregator())

    first = session.summary()

    assert first.total_requests == 4
    assert session.summary() is first
    assert session.filter("") is first
    assert session.filter(None) is first


def test_session_filter_aggregates_matches_only() -> None:
    session = DashboardSession(RECORDS, aggregator=Aggregator())

    summary = session.filter("api")

    assert summary.total_requests == 2
    assert [entry.label for entry in summary.top_paths or []] == ["/api/users", "/api/orders"]


def test_session_filter_without_matches_is_empty() -> None:
    session = DashboardSession(RECORDS, aggregator=Aggregator())

    assert session.filter("zzz").is_empty


def test_session_accepts_custom_search() -> None:
    class FirstOnly:
        def __init__(self, records: List[LogRecord]) -> None:
            self.records = records

        def search(self, query: str) -> List[LogRecord]:
            return self.records[:1]

    session = DashboardSession(RECORDS, aggregator=Aggregator(), search_factory=FirstOnly)

    assert session.search("anything") == RECORDS[:1]
    assert session.filter("anything").total_requests == 1


def test_load_session_from_json_upload() -> None:
    payload = json.dumps(
        [
            {
                "date": "2024-01-01",
                "time": "10:00:00",
                "x-edge-location": "ATH50-C1",
                "sc-bytes": 1,
                "c-ip": "10.0.0.1",
                "cs-method": "GET",
                "cs-uri-stem": "/",
                "sc-status": 200,
            }
        ]
    ).encode("utf-8")

    session = load_session(payload, filename="logs.json")

    assert len(session) == 1
    assert session.summary().top_referers is not None
    assert session.summary().top_referers[0].label == "(Direct)"
