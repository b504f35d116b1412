"""HTTP route definitions for the service."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from starlette.concurrency import run_in_threadpool

from app.schemas import LocationResponse, RecordErrorModel, SummaryResponse
from services.aggregator import AggregationError, Aggregator, Summary, build_default_aggregator
from services.geo import base_location_code
from services.ingestion import IngestionError
from services.session import load_session
from settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


def get_aggregator() -> Aggregator:
    return build_default_aggregator()


def _summarize(
    contents: bytes,
    filename: Optional[str],
    content_type: Optional[str],
    query: Optional[str],
    aggregator: Aggregator,
) -> Summary:
    session = load_session(
        contents,
        filename=filename,
        content_type=content_type,
        aggregator=aggregator,
    )
    return session.filter(query)


def _unprocessable(message: str, errors: list[RecordErrorModel]) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={
            "message": message,
            "errors": [error.model_dump() for error in errors],
        },
    )


@router.post(
    "/summary",
    response_model=SummaryResponse,
    summary="Aggregate an uploaded JSON or CSV log export.",
)
async def summarize_upload(
    file: UploadFile = File(..., description="JSON or CSV edge access log export."),
    q: Optional[str] = Query(None, description="Only summarize records matching this search."),
    aggregator: Aggregator = Depends(get_aggregator),
) -> SummaryResponse:
    limit = get_settings().max_upload_bytes
    try:
        contents = await file.read(limit + 1)
    finally:
        await file.close()

    if len(contents) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Uploaded file exceeds {limit} bytes.",
        )

    try:
        summary = await run_in_threadpool(
            _summarize,
            contents,
            file.filename,
            file.content_type,
            q,
            aggregator,
        )
    except IngestionError as exc:
        raise _unprocessable(
            str(exc),
            [RecordErrorModel(row_number=e.row_number, reason=e.reason) for e in exc.errors],
        ) from exc
    except AggregationError as exc:
        logger.warning("Aggregation failed", extra={"reason": exc.reason})
        raise _unprocessable(
            "Aggregation failed.",
            [RecordErrorModel(row_number=exc.index + 1, reason=exc.reason)],
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return SummaryResponse.from_summary(summary)


@router.get(
    "/locations/{code}",
    response_model=LocationResponse,
    summary="Resolve an edge location code to coordinates.",
)
async def get_location(
    code: str,
    aggregator: Aggregator = Depends(get_aggregator),
) -> LocationResponse:
    base_code = base_location_code(code)
    coordinate = aggregator.resolver.resolve(base_code)
    if coordinate is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No coordinates known for edge location {code!r}.",
        )
    return LocationResponse.from_coordinate(base_code, coordinate)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "POST a log export to /summary."}
