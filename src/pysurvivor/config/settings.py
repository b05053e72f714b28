"""Environment-driven settings for the engine and its hosts."""

from __future__ import annotations

import logging
import os
from datetime import time
from pathlib import Path


logger = logging.getLogger(__name__)

DB_PATH_ENV = "PYSURVIVOR_DB_PATH"
LOCK_ZONE_ENV = "PYSURVIVOR_LOCK_ZONE"
DEFAULT_LOCK_TIME_ENV = "PYSURVIVOR_DEFAULT_LOCK_TIME"
POLL_SECONDS_ENV = "PYSURVIVOR_POLL_SECONDS"
REGULAR_SEASON_WEEKS_ENV = "PYSURVIVOR_REGULAR_SEASON_WEEKS"

DEFAULT_LOCK_ZONE = "America/New_York"
DEFAULT_LOCK_TIME = time(13, 0)
DEFAULT_POLL_SECONDS = 15.0
DEFAULT_REGULAR_SEASON_WEEKS = 18
DEFAULT_DB_PATH = Path(__file__).resolve().parents[2] / "pysurvivor.sqlite"


def _env_float(name: str, default: float, *, clamp_min: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def lock_zone() -> str:
    return os.getenv(LOCK_ZONE_ENV) or DEFAULT_LOCK_ZONE


def default_lock_time() -> time:
    """Fixed local lock time used when a hybrid pool's own value is unusable."""

    raw = os.getenv(DEFAULT_LOCK_TIME_ENV)
    if not raw:
        return DEFAULT_LOCK_TIME
    try:
        hours, minutes = (int(part) for part in raw.strip().split(":"))
        return time(hours, minutes)
    except ValueError:
        logger.warning("Invalid lock time for %s: %s; using default %s", DEFAULT_LOCK_TIME_ENV, raw, DEFAULT_LOCK_TIME)
        return DEFAULT_LOCK_TIME


def poll_interval_seconds() -> float:
    return _env_float(POLL_SECONDS_ENV, DEFAULT_POLL_SECONDS, clamp_min=1.0)


def regular_season_weeks() -> int:
    return _env_int(REGULAR_SEASON_WEEKS_ENV, DEFAULT_REGULAR_SEASON_WEEKS, min_value=1)
