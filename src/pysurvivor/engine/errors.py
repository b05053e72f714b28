"""Typed failures raised by the pick-lock and standings engine."""

from __future__ import annotations

from datetime import datetime


class SurvivorError(RuntimeError):
    """Base class for engine failures scoped to a single operation."""

    code = "survivor_error"


class LockExpired(SurvivorError):
    """A write reached a (pool, member, week) slot at or after its lock instant."""

    code = "lock_expired"

    def __init__(self, pool_id: str, member_id: str, week: int, locked_at: datetime | None):
        when = locked_at.isoformat() if locked_at else "an earlier lock"
        super().__init__(f"Week {week} pick for {member_id} in pool {pool_id} locked at {when}")
        self.pool_id = pool_id
        self.member_id = member_id
        self.week = week
        self.locked_at = locked_at


class TeamAlreadyUsed(SurvivorError):
    code = "team_already_used"

    def __init__(self, pool_id: str, member_id: str, team: str, used_week: int):
        super().__init__(f"{team} already picked by {member_id} in week {used_week} of pool {pool_id}")
        self.pool_id = pool_id
        self.member_id = member_id
        self.team = team
        self.used_week = used_week


class ScheduleDataMissing(SurvivorError):
    """No game record exists for a team in a week."""

    code = "schedule_data_missing"

    def __init__(self, season: int, week: int, team: str):
        super().__init__(f"No game found for {team} in season {season} week {week}")
        self.season = season
        self.week = week
        self.team = team


class MalformedDeadlineConfig(SurvivorError, ValueError):
    code = "malformed_deadline_config"

    def __init__(self, raw: str | None):
        super().__init__(f"Unparsable fixed lock time: {raw!r}")
        self.raw = raw


class WeekOutOfRange(SurvivorError, ValueError):
    """Week falls before the pool's start week or in excluded playoff weeks."""

    code = "week_out_of_range"

    def __init__(self, pool_id: str, week: int, reason: str):
        super().__init__(f"Week {week} is not open in pool {pool_id}: {reason}")
        self.pool_id = pool_id
        self.week = week
        self.reason = reason


class RulesLocked(SurvivorError):
    """Pool rules changed after a pick in the pool reached its lock."""

    code = "rules_locked"

    def __init__(self, pool_id: str, week: int):
        super().__init__(f"Rules for pool {pool_id} are frozen: a week {week} pick has already locked")
        self.pool_id = pool_id
        self.week = week


class PoolNotFound(SurvivorError, KeyError):
    code = "pool_not_found"

    def __init__(self, pool_id: str):
        super().__init__(f"Pool {pool_id} not found")
        self.pool_id = pool_id

    def __str__(self) -> str:
        return str(self.args[0])


__all__ = [
    "LockExpired",
    "MalformedDeadlineConfig",
    "PoolNotFound",
    "RulesLocked",
    "ScheduleDataMissing",
    "SurvivorError",
    "TeamAlreadyUsed",
    "WeekOutOfRange",
]
