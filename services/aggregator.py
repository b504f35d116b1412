"""Aggregation logic for edge access logs."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from typing import Callable, Dict, Generic, Hashable, List, Optional, Sequence, TypeVar

from models.records import LogRecord
from services.geo import CoordinateResolver, base_location_code
from settings import get_settings

logger = logging.getLogger(__name__)

DIRECT_REFERER = "(Direct)"
UNKNOWN_USER_AGENT = "(Unknown)"
OTHER_BROWSER = "Other"

# First substring match wins.
BROWSER_PRIORITY = ("Chrome", "Firefox", "Safari", "Edge")

_HOUR_KEY_FORMAT = "%Y-%m-%dT%H:00"

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


class AggregationError(ValueError):
    """Raised when a record cannot be aggregated."""

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"Record {index}: {reason}")
        self.index = index
        self.reason = reason


@dataclass(frozen=True)
class RankedEntry:
    label: str
    count: int


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class TimeBucket:
    """Requests seen within one clock hour."""

    key: str
    total_count: int
    by_status: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class GeoPoint:
    location_code: str
    lat: float
    lng: float
    count: int


@dataclass(frozen=True)
class GeoDistribution:
    points: List[GeoPoint]
    total: int


@dataclass(frozen=True)
class Summary:
    """Computed statistics for a batch of log records.

    Every field is ``None`` when the batch was empty.
    """

    total_requests: Optional[int] = None
    unique_visitor_count: Optional[int] = None
    total_bytes_transferred: Optional[int] = None
    time_range: Optional[TimeRange] = None
    requests_over_time: Optional[List[TimeBucket]] = None
    geo_distribution: Optional[GeoDistribution] = None
    top_paths: Optional[List[RankedEntry]] = None
    top_referers: Optional[List[RankedEntry]] = None
    top_user_agents: Optional[List[RankedEntry]] = None
    top_edge_locations: Optional[List[RankedEntry]] = None
    browser_distribution: Optional[List[RankedEntry]] = None
    status_codes: Optional[List[RankedEntry]] = None

    @classmethod
    def empty(cls) -> "Summary":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.total_requests is None


class RankedHistogram(Generic[T, K]):
    """Exact frequency count over a key extracted from each item.

    Ranking is descending by count; equal counts keep first-seen order.
    """

    def __init__(self, key: Callable[[T], K]) -> None:
        self._key = key
        self._counts: Counter[K] = Counter()

    def add(self, item: T) -> None:
        self._counts[self._key(item)] += 1

    def counts(self) -> Dict[K, int]:
        return dict(self._counts)

    def total(self) -> int:
        return sum(self._counts.values())

    def ranked(self, limit: Optional[int] = None) -> List[tuple[K, int]]:
        # Counter preserves insertion order and sorted() is stable.
        entries = sorted(self._counts.items(), key=lambda item: item[1], reverse=True)
        if limit is not None:
            entries = entries[:limit]
        return entries


def status_class(status_code: int) -> str:
    return f"{status_code // 100}xx"


def browser_family(user_agent: Optional[str]) -> str:
    if not user_agent:
        return OTHER_BROWSER
    for name in BROWSER_PRIORITY:
        if name in user_agent:
            return name
    return OTHER_BROWSER


def referer_label(record: LogRecord) -> str:
    return record.referer or DIRECT_REFERER


def user_agent_label(record: LogRecord) -> str:
    return record.user_agent or UNKNOWN_USER_AGENT


def _ranked_entries(histogram: RankedHistogram, limit: Optional[int] = None) -> List[RankedEntry]:
    return [RankedEntry(label=str(key), count=count) for key, count in histogram.ranked(limit)]


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def __init__(
        self,
        resolver: Optional[CoordinateResolver] = None,
        top_n: int = 10,
    ) -> None:
        if top_n <= 0:
            raise ValueError("top_n must be positive.")
        self.resolver = resolver if resolver is not None else CoordinateResolver()
        self.top_n = top_n

    def aggregate(self, records: Sequence[LogRecord]) -> Summary:
        if not records:
            return Summary.empty()

        unique_ips: set[str] = set()
        total_bytes = 0
        start: Optional[datetime] = None
        end: Optional[datetime] = None
        hourly: Dict[str, Counter[str]] = {}

        sites = RankedHistogram(lambda record: base_location_code(record.edge_location))
        paths = RankedHistogram(lambda record: record.uri_path)
        referers = RankedHistogram(referer_label)
        user_agents = RankedHistogram(user_agent_label)
        edge_locations = RankedHistogram(lambda record: record.edge_location)
        browsers = RankedHistogram(lambda record: browser_family(record.user_agent))
        statuses = RankedHistogram(lambda record: status_class(record.status_code))
        histograms = (sites, paths, referers, user_agents, edge_locations, browsers, statuses)

        for index, record in enumerate(records):
            self._validate(index, record)
            try:
                timestamp = record.timestamp
            except ValueError as exc:
                raise AggregationError(index, str(exc)) from exc

            unique_ips.add(record.client_ip)
            total_bytes += record.bytes_sent

            if start is None or timestamp < start:
                start = timestamp
            if end is None or timestamp > end:
                end = timestamp

            hour_key = timestamp.strftime(_HOUR_KEY_FORMAT)
            hourly.setdefault(hour_key, Counter())[status_class(record.status_code)] += 1

            for histogram in histograms:
                histogram.add(record)

        if start is None or end is None:
            raise AggregationError(len(records) - 1, "no timestamps collected")

        return Summary(
            total_requests=len(records),
            unique_visitor_count=len(unique_ips),
            total_bytes_transferred=total_bytes,
            time_range=TimeRange(start=start, end=end),
            requests_over_time=[
                TimeBucket(
                    key=key,
                    total_count=sum(hourly[key].values()),
                    by_status=dict(sorted(hourly[key].items())),
                )
                for key in sorted(hourly)
            ],
            geo_distribution=self._geo_distribution(sites),
            top_paths=_ranked_entries(paths, self.top_n),
            top_referers=_ranked_entries(referers, self.top_n),
            top_user_agents=_ranked_entries(user_agents, self.top_n),
            top_edge_locations=_ranked_entries(edge_locations, self.top_n),
            browser_distribution=_ranked_entries(browsers),
            status_codes=_ranked_entries(statuses),
        )

    def _geo_distribution(self, sites: RankedHistogram) -> GeoDistribution:
        points: list[GeoPoint] = []
        for code, count in sites.counts().items():
            coordinate = self.resolver.resolve(code)
            if coordinate is None:
                logger.warning(
                    "No coordinates found for edge location",
                    extra={"base_code": code or "(blank)", "record_count": count},
                )
                continue
            points.append(
                GeoPoint(location_code=code, lat=coordinate.lat, lng=coordinate.lng, count=count)
            )
        return GeoDistribution(points=points, total=sites.total())

    @staticmethod
    def _validate(index: int, record: LogRecord) -> None:
        if not record.client_ip:
            raise AggregationError(index, "missing client IP")
        if not record.edge_location:
            raise AggregationError(index, "missing edge location")
        if record.uri_path is None:
            raise AggregationError(index, "missing URI path")
        if not isinstance(record.status_code, int) or isinstance(record.status_code, bool):
            raise AggregationError(index, "status code must be an integer")
        if not isinstance(record.bytes_sent, int) or record.bytes_sent < 0:
            raise AggregationError(index, "bytes sent must be a non-negative integer")


@lru_cache
def build_default_aggregator() -> Aggregator:
    """Factory that wires the aggregator with configured defaults."""
    settings = get_settings()
    return Aggregator(resolver=CoordinateResolver(), top_n=settings.top_n)
