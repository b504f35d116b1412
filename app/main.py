from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.aggregator import build_default_aggregator
from settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    build_default_aggregator()
    try:
        yield
    finally:
        build_default_aggregator.cache_clear()
        get_settings.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Edge Log Dashboard",
        description="Summaries of CDN edge access logs uploaded as JSON or CSV.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
