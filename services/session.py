"""Caller-owned dataset state: records, their search index and summaries."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from models.records import LogRecord
from services.aggregator import Aggregator, Summary, build_default_aggregator
from services.ingestion import parse_upload
from services.search import RecordSearch, SubstringRecordSearch

logger = logging.getLogger(__name__)

SearchFactory = Callable[[Sequence[LogRecord]], RecordSearch]


class DashboardSession:
    """One loaded dataset.

    The full-dataset summary is computed on first use and kept; filtered
    summaries are recomputed on every call.
    """

    def __init__(
        self,
        records: Sequence[LogRecord],
        aggregator: Optional[Aggregator] = None,
        search_factory: SearchFactory = SubstringRecordSearch,
    ) -> None:
        self.records: List[LogRecord] = list(records)
        self.aggregator = aggregator or build_default_aggregator()
        self.search_index: RecordSearch = search_factory(self.records)
        self._summary: Optional[Summary] = None

    def __len__(self) -> int:
        return len(self.records)

    def summary(self) -> Summary:
        if self._summary is None:
            self._summary = self.aggregator.aggregate(self.records)
        return self._summary

    def search(self, query: Optional[str]) -> List[LogRecord]:
        if not query or not query.strip():
            return list(self.records)
        return self.search_index.search(query)

    def filter(self, query: Optional[str]) -> Summary:
        """Summarize only the records matching ``query``; blank means everything."""
        if not query or not query.strip():
            return self.summary()
        matches = self.search_index.search(query)
        logger.info("Filtered dataset", extra={"query": query, "match_count": len(matches)})
        return self.aggregator.aggregate(matches)


def load_session(
    payload: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    aggregator: Optional[Aggregator] = None,
) -> DashboardSession:
    """Decode an uploaded export and wrap it in a fresh session."""
    records = parse_upload(payload, filename=filename, content_type=content_type)
    return DashboardSession(records, aggregator=aggregator)
