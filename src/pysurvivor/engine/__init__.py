"""Pick-lock and standings engine."""

from .clock import to_absolute_instant, utc_now
from .errors import (
    LockExpired,
    MalformedDeadlineConfig,
    PoolNotFound,
    RulesLocked,
    ScheduleDataMissing,
    SurvivorError,
    TeamAlreadyUsed,
    WeekOutOfRange,
)
from .ledger import ClearAllResult, PickLedger, PickState
from .locks import lock_instant, parse_lock_time
from .outcomes import resolve
from .poller import StandingsPoller
from .service import LockInfo, SurvivorService
from .standings import MemberStanding, Standings, compute_standings

__all__ = [
    "ClearAllResult",
    "LockExpired",
    "LockInfo",
    "MalformedDeadlineConfig",
    "MemberStanding",
    "PickLedger",
    "PickState",
    "PoolNotFound",
    "RulesLocked",
    "ScheduleDataMissing",
    "Standings",
    "StandingsPoller",
    "SurvivorError",
    "SurvivorService",
    "TeamAlreadyUsed",
    "WeekOutOfRange",
    "compute_standings",
    "lock_instant",
    "parse_lock_time",
    "resolve",
    "to_absolute_instant",
    "utc_now",
]
