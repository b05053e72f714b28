"""Lock instants for picks under rolling and hybrid deadline policies."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, time
from typing import Iterable, Optional, Sequence

from pysurvivor.config import canonical_team, settings
from pysurvivor.engine.clock import to_absolute_instant
from pysurvivor.engine.errors import MalformedDeadlineConfig, ScheduleDataMissing
from pysurvivor.models import DeadlineMode, Game, PoolRules, WeekAnchor


logger = logging.getLogger(__name__)

_TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})$")
_TIME_12H = re.compile(r"^(\d{1,2}):(\d{2})\s*([ap])\.?m\.?$", re.IGNORECASE)


def parse_lock_time(raw: str | None) -> time:
    """Strictly parse ``HH:MM`` (24h) or ``h:mm am/pm``.

    Raises ``MalformedDeadlineConfig`` for anything else, including ``None``.
    """

    if raw is None:
        raise MalformedDeadlineConfig(raw)
    text = raw.strip()
    match = _TIME_24H.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if 0 <= hours <= 23 and 0 <= minutes <= 59:
            return time(hours, minutes)
        raise MalformedDeadlineConfig(raw)
    match = _TIME_12H.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if not (1 <= hours <= 12 and 0 <= minutes <= 59):
            raise MalformedDeadlineConfig(raw)
        meridiem = match.group(3).lower()
        if meridiem == "p" and hours < 12:
            hours += 12
        if meridiem == "a" and hours == 12:
            hours = 0
        return time(hours, minutes)
    raise MalformedDeadlineConfig(raw)


def effective_lock_time(rules: PoolRules) -> time:
    """Fixed local time for a hybrid pool, falling back to the default on bad input."""

    if rules.fixed_local_time is None:
        return settings.default_lock_time()
    try:
        return parse_lock_time(rules.fixed_local_time)
    except MalformedDeadlineConfig:
        fallback = settings.default_lock_time()
        logger.warning(
            "Pool %s has malformed fixed lock time %r; using %s",
            rules.pool_id,
            rules.fixed_local_time,
            fallback.strftime("%H:%M"),
        )
        return fallback


def fixed_lock_instant(
    rules: PoolRules,
    anchor: WeekAnchor | None,
    *,
    zone: str | None = None,
) -> datetime | None:
    """Absolute instant of the week's fixed deadline, or None when it does not apply."""

    if rules.deadline_mode is not DeadlineMode.HYBRID:
        return None
    if anchor is None:
        return None
    return to_absolute_instant(zone or settings.lock_zone(), anchor.anchor_date, effective_lock_time(rules))


def lock_instant(
    rules: PoolRules,
    game: Game | None,
    anchor: WeekAnchor | None = None,
    *,
    zone: str | None = None,
) -> datetime | None:
    """Instant at which a pick on ``game`` becomes immutable.

    Rolling pools lock at the game's kickoff. Hybrid pools lock at the earlier
    of kickoff and the fixed local deadline on the week's anchor date. With no
    game, a rolling pool has no lock and a hybrid pool uses the fixed deadline.
    A hybrid week without an anchor record locks at kickoff only.
    """

    fixed = fixed_lock_instant(rules, anchor, zone=zone)
    if game is None:
        return fixed
    return game_lock_instant(game, fixed)


def game_lock_instant(game: Game, fixed: datetime | None) -> datetime:
    """Kickoff, capped by the week's fixed deadline when there is one."""

    if fixed is None:
        return game.kickoff
    return min(game.kickoff, fixed)


def is_locked(lock_at: datetime | None, now: datetime) -> bool:
    return lock_at is not None and now >= lock_at


def find_team_game(games: Iterable[Game], week: int, team: str) -> Optional[Game]:
    code = canonical_team(team)
    for game in games:
        if game.week == week and code in (game.home_team, game.away_team):
            return game
    return None


def require_team_game(games: Iterable[Game], season: int, week: int, team: str) -> Game:
    game = find_team_game(games, week, team)
    if game is None:
        raise ScheduleDataMissing(season, week, canonical_team(team))
    return game


@dataclass(frozen=True)
class MatchupLock:
    game: Game
    lock_at: datetime
    locked: bool


def matchup_locks(
    rules: PoolRules,
    games: Sequence[Game],
    anchor: WeekAnchor | None,
    now: datetime,
    *,
    zone: str | None = None,
) -> list[MatchupLock]:
    """Per-matchup lock instants for a week's games, ordered by kickoff."""

    fixed = fixed_lock_instant(rules, anchor, zone=zone)
    result: list[MatchupLock] = []
    for game in sorted(games, key=lambda g: (g.kickoff, g.home_team)):
        lock_at = game_lock_instant(game, fixed)
        result.append(MatchupLock(game=game, lock_at=lock_at, locked=now >= lock_at))
    return result
