"""Pick ledger: the only path through which picks are created, changed or removed."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from pysurvivor.config import canonical_team, settings
from pysurvivor.engine.clock import Clock, utc_now
from pysurvivor.engine.errors import LockExpired, PoolNotFound, RulesLocked, TeamAlreadyUsed, WeekOutOfRange
from pysurvivor.engine.locks import find_team_game, is_locked, lock_instant, require_team_game
from pysurvivor.engine.standings import week_out_of_range_reason
from pysurvivor.models import Game, Pick, PoolRules, WeekAnchor
from pysurvivor.persistence import PoolStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PickState:
    """A stored pick with its derived lock instant and committed flag."""

    pick: Pick
    lock_at: datetime | None
    committed: bool


@dataclass(frozen=True)
class ClearAllResult:
    cleared: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class _WeekSchedule:
    games: Sequence[Game]
    anchor: WeekAnchor | None


class PickLedger:
    """Validates and applies pick writes against the lock and uniqueness rules.

    Committed status is never stored. Every read and write derives it from the
    pick's lock instant and a clock reading taken at that moment; writes take
    that reading inside the store's write transaction.
    """

    def __init__(self, store: PoolStore, *, clock: Clock | None = None, zone: str | None = None):
        self.store = store
        self._clock = clock or utc_now
        self._zone = zone

    @property
    def zone(self) -> str:
        return self._zone or settings.lock_zone()

    def now(self) -> datetime:
        return self._clock()

    def rules(self, pool_id: str) -> PoolRules:
        rules = self.store.get_pool(pool_id)
        if rules is None:
            raise PoolNotFound(pool_id)
        return rules

    def save_rules(self, rules: PoolRules) -> PoolRules:
        """Create or update a pool's rules while none of its picks has locked.

        Lock instants and outcomes are derived from the rules, so once any pick
        in the pool is committed only the display name may change; anything
        else raises ``RulesLocked``.
        """

        def guard(existing: Optional[PoolRules], pool_picks: List[Pick]) -> None:
            if existing is None or existing.model_dump(exclude={"name"}) == rules.model_dump(exclude={"name"}):
                return
            committed = self.committed_picks(existing, pool_picks, now=self.now())
            if committed:
                raise RulesLocked(rules.pool_id, min(pick.week for pick in committed))

        stored = self.store.save_pool(rules, guard=guard)
        logger.info("Saved rules for pool %s", rules.pool_id)
        return stored

    def _week_schedule(self, rules: PoolRules, week: int) -> _WeekSchedule:
        return _WeekSchedule(
            games=self.store.list_games(rules.season, week=week),
            anchor=self.store.get_week_anchor(rules.season, week),
        )

    def _pick_lock(self, rules: PoolRules, pick: Pick, schedule: _WeekSchedule) -> datetime | None:
        game = find_team_game(schedule.games, pick.week, pick.team)
        return lock_instant(rules, game, schedule.anchor, zone=self.zone)

    def _check_week(self, rules: PoolRules, week: int) -> None:
        reason = week_out_of_range_reason(rules, week, regular_season_weeks=settings.regular_season_weeks())
        if reason is not None:
            raise WeekOutOfRange(rules.pool_id, week, reason)

    def state_of(self, rules: PoolRules, pick: Pick, *, now: datetime | None = None) -> PickState:
        schedule = self._week_schedule(rules, pick.week)
        lock_at = self._pick_lock(rules, pick, schedule)
        current = now if now is not None else self.now()
        return PickState(pick=pick, lock_at=lock_at, committed=is_locked(lock_at, current))

    def upsert_draft(self, pool_id: str, member_id: str, week: int, team: str) -> PickState:
        """Create or replace the member's pick for ``week``.

        Raises ``LockExpired`` when the slot's current pick or the new team's
        game has reached its lock, ``TeamAlreadyUsed`` when the team is on any
        other week's pick (draft or committed), ``ScheduleDataMissing`` when the
        team has no game that week, and ``WeekOutOfRange`` for weeks outside
        the pool's season.
        """

        rules = self.rules(pool_id)
        self._check_week(rules, week)
        code = canonical_team(team)
        schedule = self._week_schedule(rules, week)
        game = require_team_game(schedule.games, rules.season, week, code)
        new_lock = lock_instant(rules, game, schedule.anchor, zone=self.zone)

        def guard(existing: Optional[Pick], member_picks: List[Pick]) -> None:
            now = self.now()
            if existing is not None:
                existing_lock = self._pick_lock(rules, existing, schedule)
                if is_locked(existing_lock, now):
                    raise LockExpired(pool_id, member_id, week, existing_lock)
            if is_locked(new_lock, now):
                raise LockExpired(pool_id, member_id, week, new_lock)
            for other in member_picks:
                if other.week != week and other.team == code:
                    raise TeamAlreadyUsed(pool_id, member_id, code, other.week)

        stored = self.store.write_pick(
            pool_id=pool_id,
            member_id=member_id,
            week=week,
            team=code,
            guard=guard,
        )
        logger.info("Saved week %s pick %s for %s in pool %s", week, code, member_id, pool_id)
        return PickState(pick=stored, lock_at=new_lock, committed=False)

    def clear(self, pool_id: str, member_id: str, week: int) -> Optional[Pick]:
        """Remove the member's draft for ``week``; committed picks raise ``LockExpired``."""

        rules = self.rules(pool_id)
        schedule = self._week_schedule(rules, week)

        def guard(existing: Optional[Pick], member_picks: List[Pick]) -> None:
            if existing is None:
                return
            lock_at = self._pick_lock(rules, existing, schedule)
            if is_locked(lock_at, self.now()):
                raise LockExpired(pool_id, member_id, week, lock_at)

        removed = self.store.delete_pick(pool_id=pool_id, member_id=member_id, week=week, guard=guard)
        if removed is not None:
            logger.info("Cleared week %s pick for %s in pool %s", week, member_id, pool_id)
        return removed

    def clear_all(self, pool_id: str, member_id: str) -> ClearAllResult:
        """Clear every still-editable week; locked weeks are left alone and reported."""

        self.rules(pool_id)
        cleared: list[int] = []
        skipped: list[int] = []
        for pick in self.store.list_member_picks(pool_id, member_id):
            try:
                removed = self.clear(pool_id, member_id, pick.week)
            except LockExpired:
                skipped.append(pick.week)
                continue
            if removed is not None:
                cleared.append(pick.week)
        return ClearAllResult(cleared=cleared, skipped=skipped)

    def member_picks(self, pool_id: str, member_id: str) -> List[PickState]:
        rules = self.rules(pool_id)
        now = self.now()
        return [self.state_of(rules, pick, now=now) for pick in self.store.list_member_picks(pool_id, member_id)]

    def used_teams(self, pool_id: str, member_id: str) -> List[str]:
        return [pick.team for pick in self.store.list_member_picks(pool_id, member_id)]

    def committed_picks(self, rules: PoolRules, picks: Sequence[Pick], *, now: datetime) -> List[Pick]:
        """Subset of ``picks`` whose lock instant has passed at ``now``."""

        schedules: dict[int, _WeekSchedule] = {}
        result: list[Pick] = []
        for pick in picks:
            schedule = schedules.get(pick.week)
            if schedule is None:
                schedule = schedules[pick.week] = self._week_schedule(rules, pick.week)
            if is_locked(self._pick_lock(rules, pick, schedule), now):
                result.append(pick)
        return result
