from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_HISTORY_PATH_ENV = "TREMOR_HISTORY_PATH"
_SESSION_DURATION_ENV = "TREMOR_SESSION_DURATION_MS"
_MIN_SESSION_SAMPLES_ENV = "TREMOR_MIN_SESSION_SAMPLES"
_SAMPLE_RATE_ENV = "TREMOR_SAMPLE_RATE_HZ"
_LIVE_WINDOW_ENV = "TREMOR_LIVE_WINDOW"
_LIVE_MIN_SAMPLES_ENV = "TREMOR_LIVE_MIN_SAMPLES"
_LIVE_UPDATE_EVERY_ENV = "TREMOR_LIVE_UPDATE_EVERY"
_FREQUENCY_THRESHOLD_ENV = "TREMOR_FREQUENCY_THRESHOLD_HZ"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    history_path: Optional[str]
    session_duration_ms: int
    min_session_samples: int
    sample_rate_hz: float
    live_window: int
    live_min_samples: int
    live_update_every: int
    frequency_threshold_hz: float
    log_level: str


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


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


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
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
        history_path=_read_optional_env(_HISTORY_PATH_ENV, "./tmp/history.json"),
        session_duration_ms=_read_positive_int(_SESSION_DURATION_ENV, 10_000),
        min_session_samples=_read_positive_int(_MIN_SESSION_SAMPLES_ENV, 100),
        sample_rate_hz=_read_positive_float(_SAMPLE_RATE_ENV, 100.0),
        live_window=_read_positive_int(_LIVE_WINDOW_ENV, 100),
        live_min_samples=_read_positive_int(_LIVE_MIN_SAMPLES_ENV, 20),
        live_update_every=_read_positive_int(_LIVE_UPDATE_EVERY_ENV, 5),
        frequency_threshold_hz=_read_positive_float(_FREQUENCY_THRESHOLD_ENV, 1.0),
        log_level=_read_log_level("INFO"),
    )
