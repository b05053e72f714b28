"""Fold committed picks and game results into per-member standings."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Iterable, Mapping, Sequence

from pysurvivor.config import settings
from pysurvivor.engine.errors import ScheduleDataMissing
from pysurvivor.engine.outcomes import counts_as_strike, resolve
from pysurvivor.models import Game, Member, Outcome, Pick, PoolRules


logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class MemberStanding:
    member_id: str
    display_name: str
    avatar_url: str | None
    wins: int
    losses: int
    pushes: int
    strikes: int
    strikes_remaining: int
    alive: bool
    eliminated_week: int | None
    week_pick: str | None
    week_outcome: Outcome | None

    @property
    def record(self) -> str:
        text = f"{self.wins}-{self.losses}"
        return f"{text}-{self.pushes}" if self.pushes else text


@dataclass(frozen=True)
class Standings:
    pool_id: str
    through_week: int
    strikes_allowed: int
    entries: tuple[MemberStanding, ...]

    @property
    def alive_count(self) -> int:
        return sum(1 for entry in self.entries if entry.alive)

    @property
    def eliminated_count(self) -> int:
        return sum(1 for entry in self.entries if not entry.alive)

    def get(self, member_id: str) -> MemberStanding | None:
        for entry in self.entries:
            if entry.member_id == member_id:
                return entry
        return None

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["alive_count"] = self.alive_count
        payload["eliminated_count"] = self.eliminated_count
        for entry in payload["entries"]:
            outcome = entry["week_outcome"]
            entry["week_outcome"] = outcome.value if outcome is not None else None
        return payload


def week_out_of_range_reason(
    rules: PoolRules,
    week: int,
    *,
    regular_season_weeks: int = settings.DEFAULT_REGULAR_SEASON_WEEKS,
) -> str | None:
    """Why ``week`` is not part of the pool's season, or None when it is."""

    if week < rules.start_week:
        return f"pool starts in week {rules.start_week}"
    if not rules.include_playoffs and week > regular_season_weeks:
        return "pool excludes playoff weeks"
    return None


class GameIndex:
    """Lookup of games by (week, team) for one season."""

    def __init__(self, season: int, games: Iterable[Game]):
        self.season = season
        self._by_team: dict[tuple[int, str], Game] = {}
        for game in sorted(games, key=lambda g: (g.week, g.kickoff, g.home_team, g.away_team)):
            if game.season != season:
                continue
            self._by_team.setdefault((game.week, game.home_team), game)
            self._by_team.setdefault((game.week, game.away_team), game)

    def game_for(self, week: int, team: str) -> Game:
        game = self._by_team.get((week, team))
        if game is None:
            raise ScheduleDataMissing(self.season, week, team)
        return game


def _dedupe_picks(picks: Iterable[Pick]) -> list[Pick]:
    latest: dict[tuple[str, int], Pick] = {}
    ordered = sorted(picks, key=lambda p: (p.member_id, p.week, p.updated_at or _EPOCH, p.team))
    for pick in ordered:
        latest[(pick.member_id, pick.week)] = pick
    return [latest[key] for key in sorted(latest)]


def _sort_key(entry: MemberStanding) -> tuple:
    return (not entry.alive, entry.strikes, -entry.wins, entry.display_name.lower(), entry.member_id)


def compute_standings(
    rules: PoolRules,
    through_week: int,
    members: Iterable[Member],
    picks: Iterable[Pick],
    games: Iterable[Game],
    *,
    regular_season_weeks: int = settings.DEFAULT_REGULAR_SEASON_WEEKS,
) -> Standings:
    """Recompute standings from scratch for weeks up to ``through_week``.

    ``picks`` must hold committed picks only; picks from other pools are
    dropped before anything else looks at them. The result depends on nothing
    but the arguments, so repeated calls with the same history agree exactly
    and a corrected final score is picked up on the next call.
    """

    index = GameIndex(rules.season, games)
    roster: dict[str, Member] = {member.member_id: member for member in members}
    counters: dict[str, dict[str, int]] = {
        member_id: {"wins": 0, "losses": 0, "pushes": 0, "strikes": 0} for member_id in roster
    }
    eliminated_week: dict[str, int] = {}
    week_picks: dict[str, tuple[str, Outcome]] = {}

    for pick in _dedupe_picks(pick for pick in picks if pick.pool_id == rules.pool_id):
        if pick.week > through_week:
            continue
        if week_out_of_range_reason(rules, pick.week, regular_season_weeks=regular_season_weeks) is not None:
            continue
        tally = counters.setdefault(pick.member_id, {"wins": 0, "losses": 0, "pushes": 0, "strikes": 0})
        try:
            game = index.game_for(pick.week, pick.team)
        except ScheduleDataMissing as exc:
            logger.debug("Pick left pending: %s", exc)
            game = None
        outcome = resolve(game, pick.team, rules.tie_rule)
        if pick.week == through_week:
            week_picks[pick.member_id] = (pick.team, outcome)

        if outcome is Outcome.WIN:
            tally["wins"] += 1
        elif outcome is Outcome.PUSH:
            tally["pushes"] += 1
        elif outcome is Outcome.LOSS:
            tally["losses"] += 1
        if counts_as_strike(outcome):
            tally["strikes"] += 1
            if tally["strikes"] >= rules.strikes_allowed:
                eliminated_week.setdefault(pick.member_id, pick.week)

    entries: list[MemberStanding] = []
    for member_id, tally in counters.items():
        member = roster.get(member_id)
        strikes = tally["strikes"]
        alive = strikes < rules.strikes_allowed
        week_pick = week_picks.get(member_id)
        entries.append(
            MemberStanding(
                member_id=member_id,
                display_name=(member.display_name if member else "") or member_id,
                avatar_url=member.avatar_url if member else None,
                wins=tally["wins"],
                losses=tally["losses"],
                pushes=tally["pushes"],
                strikes=strikes,
                strikes_remaining=max(rules.strikes_allowed - strikes, 0),
                alive=alive,
                eliminated_week=None if alive else eliminated_week.get(member_id),
                week_pick=week_pick[0] if week_pick else None,
                week_outcome=week_pick[1] if week_pick else None,
            )
        )
    entries.sort(key=_sort_key)
    return Standings(
        pool_id=rules.pool_id,
        through_week=through_week,
        strikes_allowed=rules.strikes_allowed,
        entries=tuple(entries),
    )


def strikes_by_week(
    rules: PoolRules,
    weeks: Sequence[int],
    members: Iterable[Member],
    picks: Iterable[Pick],
    games: Iterable[Game],
    *,
    regular_season_weeks: int = settings.DEFAULT_REGULAR_SEASON_WEEKS,
) -> Mapping[int, Standings]:
    """Standings snapshot at each week in ``weeks``, for history views."""

    member_list = list(members)
    pick_list = list(picks)
    game_list = list(games)
    return {
        week: compute_standings(
            rules, week, member_list, pick_list, game_list, regular_season_weeks=regular_season_weeks
        )
        for week in sorted(set(weeks))
    }
