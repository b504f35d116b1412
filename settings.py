from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_TOP_N_ENV = "DASHBOARD_TOP_N"
_MAX_UPLOAD_ENV = "DASHBOARD_MAX_UPLOAD_BYTES"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_TOP_N = 10
DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    top_n: int
    max_upload_bytes: int
    log_level: str


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        top_n=_read_positive_int(_TOP_N_ENV, DEFAULT_TOP_N),
        max_upload_bytes=_read_positive_int(_MAX_UPLOAD_ENV, DEFAULT_MAX_UPLOAD_BYTES),
        log_level=_read_log_level("INFO"),
    )
