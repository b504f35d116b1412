"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from services.aggregator import RankedEntry, Summary
from services.geo import Coordinate


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RankedEntryModel(CamelModel):
    label: str
    count: int = Field(..., ge=0)


class TimeRangeModel(CamelModel):
    start: datetime
    end: datetime


class TimeBucketModel(CamelModel):
    """Request counts for one hour, split by status class."""

    key: str = Field(..., description="Hour bucket, e.g. 2024-01-01T10:00.")
    total_count: int = Field(..., ge=0)
    by_status: Dict[str, int] = Field(default_factory=dict)


class GeoPointModel(CamelModel):
    location_code: str
    lat: float
    lng: float
    count: int = Field(..., ge=0)


class GeoDistributionModel(CamelModel):
    points: List[GeoPointModel] = Field(default_factory=list)
    total: int = Field(..., ge=0, description="Requests across all sites, mapped or not.")


class SummaryResponse(CamelModel):
    """Aggregated view of an uploaded log file. All fields are null for an empty file."""

    total_requests: Optional[int] = None
    unique_visitor_count: Optional[int] = None
    total_bytes_transferred: Optional[int] = None
    time_range: Optional[TimeRangeModel] = None
    requests_over_time: Optional[List[TimeBucketModel]] = None
    geo_distribution: Optional[GeoDistributionModel] = None
    top_paths: Optional[List[RankedEntryModel]] = None
    top_referers: Optional[List[RankedEntryModel]] = None
    top_user_agents: Optional[List[RankedEntryModel]] = None
    top_edge_locations: Optional[List[RankedEntryModel]] = None
    browser_distribution: Optional[List[RankedEntryModel]] = None
    status_codes: Optional[List[RankedEntryModel]] = None

    @classmethod
    def from_summary(cls, summary: Summary) -> "SummaryResponse":
        if summary.is_empty:
            return cls()

        if summary.time_range is None or summary.geo_distribution is None:
            raise ValueError("Summary is only partially populated.")
        return cls(
            total_requests=summary.total_requests,
            unique_visitor_count=summary.unique_visitor_count,
            total_bytes_transferred=summary.total_bytes_transferred,
            time_range=TimeRangeModel(
                start=summary.time_range.start, end=summary.time_range.end
            ),
            requests_over_time=[
                TimeBucketModel(
                    key=bucket.key,
                    total_count=bucket.total_count,
                    by_status=dict(bucket.by_status),
                )
                for bucket in summary.requests_over_time or []
            ],
            geo_distribution=GeoDistributionModel(
                points=[
                    GeoPointModel(
                        location_code=point.location_code,
                        lat=point.lat,
                        lng=point.lng,
                        count=point.count,
                    )
                    for point in summary.geo_distribution.points
                ],
                total=summary.geo_distribution.total,
            ),
            top_paths=_ranked(summary.top_paths),
            top_referers=_ranked(summary.top_referers),
            top_user_agents=_ranked(summary.top_user_agents),
            top_edge_locations=_ranked(summary.top_edge_locations),
            browser_distribution=_ranked(summary.browser_distribution),
            status_codes=_ranked(summary.status_codes),
        )


class RecordErrorModel(BaseModel):
    """Details about a row that failed validation or parsing."""

    row_number: int = Field(..., ge=0)
    reason: str


class LocationResponse(CamelModel):
    location_code: str
    lat: float
    lng: float

    @classmethod
    def from_coordinate(cls, code: str, coordinate: Coordinate) -> "LocationResponse":
        return cls(location_code=code, lat=coordinate.lat, lng=coordinate.lng)


def _ranked(entries: Optional[List[RankedEntry]]) -> List[RankedEntryModel]:
    return [RankedEntryModel(label=entry.label, count=entry.count) for entry in entries or []]
