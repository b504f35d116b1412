from __future__ import annotations

from typing import Iterator

import pytest

from services.aggregator import build_default_aggregator
from settings import get_settings


@pytest.fixture(autouse=True)
def _reset_cached_defaults() -> Iterator[None]:
    get_settings.cache_clear()
    build_default_aggregator.cache_clear()
    yield
    build_default_aggregator.cache_clear()
    get_settings.cache_clear()
