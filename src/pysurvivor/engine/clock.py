"""Civil wall-clock time to absolute instant conversion."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Callable
from zoneinfo import ZoneInfo


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Trusted server clock; every lock comparison reads time through a ``Clock``."""

    return datetime.now(timezone.utc)


@lru_cache(maxsize=None)
def get_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def utc_offset(zone: ZoneInfo, instant: datetime) -> timedelta:
    """UTC offset in effect in ``zone`` at an absolute instant."""

    offset = instant.astimezone(zone).utcoffset()
    return offset if offset is not None else timedelta(0)


def to_absolute_instant(zone: str | ZoneInfo, on_date: date, local_time: time) -> datetime:
    """Convert a wall-clock time on a civil date in ``zone`` to a UTC instant.

    The date and time are first read as if they were UTC. The zone's offset
    at that guess is subtracted, then the offset is checked again at the
    corrected instant; when the two differ the correction crossed a
    daylight-saving change and the second offset is used instead.

    Inside the transition itself (a skipped or repeated local hour) the
    result is whichever offset the second check lands on. Such times are
    accepted as-is and never adjusted towards a guessed intent.
    """

    tz = get_zone(zone) if isinstance(zone, str) else zone
    naive_guess = datetime.combine(on_date, local_time.replace(tzinfo=None), tzinfo=timezone.utc)
    first = utc_offset(tz, naive_guess)
    corrected = naive_guess - first
    second = utc_offset(tz, corrected)
    if second != first:
        corrected = naive_guess - second
    return corrected
