"""Engine facade exposed to the HTTP, CLI and polling layers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Mapping, Optional, Sequence

from pysurvivor.config import settings
from pysurvivor.engine.clock import Clock, utc_now
from pysurvivor.engine.ledger import ClearAllResult, PickLedger, PickState
from pysurvivor.engine.locks import MatchupLock, effective_lock_time, fixed_lock_instant, is_locked, matchup_locks
from pysurvivor.engine.standings import Standings, compute_standings, strikes_by_week
from pysurvivor.models import DeadlineMode, Pick, PoolRules
from pysurvivor.persistence import PoolStore


logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class LockInfo:
    pool_id: str
    week: int
    deadline_mode: DeadlineMode
    checked_at: datetime
    fixed_local_time: str | None
    fixed_lock_at: datetime | None
    lock_at: datetime | None
    locked: bool
    pick: Pick | None
    matchups: tuple[MatchupLock, ...]

    @property
    def seconds_remaining(self) -> float | None:
        if self.lock_at is None:
            return None
        return max((self.lock_at - self.checked_at).total_seconds(), 0.0)


class SurvivorService:
    """Operations the surrounding UI and CRUD layers call."""

    def __init__(self, store: PoolStore, *, clock: Clock | None = None, zone: str | None = None):
        self.store = store
        self.ledger = PickLedger(store, clock=clock or utc_now, zone=zone)

    def save_pool(self, rules: PoolRules) -> PoolRules:
        return self.ledger.save_rules(rules)

    def get_pool(self, pool_id: str) -> PoolRules:
        return self.ledger.rules(pool_id)

    def submit_pick(self, pool_id: str, member_id: str, week: int, team: str) -> PickState:
        return self.ledger.upsert_draft(pool_id, member_id, week, team)

    def clear_pick(self, pool_id: str, member_id: str, week: int) -> Optional[Pick]:
        return self.ledger.clear(pool_id, member_id, week)

    def clear_all_picks(self, pool_id: str, member_id: str) -> ClearAllResult:
        result = self.ledger.clear_all(pool_id, member_id)
        if result.skipped:
            logger.info(
                "Clear-all for %s in pool %s skipped locked weeks %s", member_id, pool_id, result.skipped
            )
        return result

    def list_picks(self, pool_id: str, member_id: str) -> List[PickState]:
        return self.ledger.member_picks(pool_id, member_id)

    def get_lock_info(self, pool_id: str, week: int, member_id: str | None = None) -> LockInfo:
        """Lock instant and state for a week, optionally for one member's pick.

        The effective instant is the member's pick lock when a pick exists,
        otherwise the week's fixed deadline (hybrid pools only). Rolling pools
        without a pick have no single week lock; see ``matchups`` instead.
        """

        rules = self.ledger.rules(pool_id)
        now = self.ledger.now()
        games = self.store.list_games(rules.season, week=week)
        anchor = self.store.get_week_anchor(rules.season, week)
        zone = self.ledger.zone
        fixed = fixed_lock_instant(rules, anchor, zone=zone)

        pick = self.store.get_pick(pool_id, member_id, week) if member_id else None
        if pick is not None:
            state = self.ledger.state_of(rules, pick, now=now)
            lock_at = state.lock_at
        else:
            lock_at = fixed

        return LockInfo(
            pool_id=pool_id,
            week=week,
            deadline_mode=rules.deadline_mode,
            checked_at=now,
            fixed_local_time=(
                effective_lock_time(rules).strftime("%H:%M") if rules.deadline_mode is DeadlineMode.HYBRID else None
            ),
            fixed_lock_at=fixed,
            lock_at=lock_at,
            locked=is_locked(lock_at, now),
            pick=pick,
            matchups=tuple(matchup_locks(rules, games, anchor, now, zone=zone)),
        )

    def _committed_through(self, rules: PoolRules, through_week: int) -> List[Pick]:
        picks = self.store.list_pool_picks(rules.pool_id, through_week=through_week)
        return self.ledger.committed_picks(rules, picks, now=self.ledger.now())

    def get_standings(self, pool_id: str, through_week: int) -> Standings:
        rules = self.ledger.rules(pool_id)
        return compute_standings(
            rules,
            through_week,
            self.store.list_members(pool_id),
            self._committed_through(rules, through_week),
            self.store.list_games(rules.season, through_week=through_week),
            regular_season_weeks=settings.regular_season_weeks(),
        )

    def get_standings_history(self, pool_id: str, weeks: Sequence[int]) -> Mapping[int, Standings]:
        rules = self.ledger.rules(pool_id)
        last = max(weeks) if weeks else rules.start_week
        return strikes_by_week(
            rules,
            weeks,
            self.store.list_members(pool_id),
            self._committed_through(rules, last),
            self.store.list_games(rules.season, through_week=last),
            regular_season_weeks=settings.regular_season_weeks(),
        )
