"""Record search used to narrow a dataset before aggregation."""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol, Sequence

from models.records import LogRecord


class RecordSearch(Protocol):
    """Anything that can narrow a dataset to the records matching a query."""

    def search(self, query: str) -> List[LogRecord]:
        ...


SEARCH_FIELDS: tuple[Callable[[LogRecord], Optional[str]], ...] = (
    lambda record: record.uri_path,
    lambda record: record.user_agent,
    lambda record: record.referer,
    lambda record: record.edge_location,
)


class SubstringRecordSearch:
    """Case-insensitive substring match over path, user agent, referer and edge location.

    Every whitespace separated term must appear in at least one searched field.
    Matches are returned in dataset order.
    """

    def __init__(self, records: Sequence[LogRecord]) -> None:
        self._records = list(records)
        self._haystacks = [self._haystack(record) for record in self._records]

    def search(self, query: str) -> List[LogRecord]:
        terms = query.lower().split()
        if not terms:
            return list(self._records)
        return [
            record
            for record, fields in zip(self._records, self._haystacks)
            if all(any(term in value for value in fields) for term in terms)
        ]

    @staticmethod
    def _haystack(record: LogRecord) -> tuple[str, ...]:
        values = (extract(record) for extract in SEARCH_FIELDS)
        return tuple(value.lower() for value in values if value)
