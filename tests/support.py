"""Shared builders for the test suite."""

from __future__ import annotations

from datetime import date, datetime, timezone

from pysurvivor.models import Game, WeekAnchor


SEASON = 2024


class FakeClock:
    """Settable clock handed to the engine in place of the server clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def week9_games() -> list[Game]:
    """Week 9 of 2024: the Sunday anchor (Nov 3) is the day DST ends in New York."""

    return [
        # Thursday night, 8:15pm EDT
        Game(season=SEASON, week=9, home_team="NYJ", away_team="HOU", kickoff=utc(2024, 11, 1, 0, 15)),
        # Sunday 1:00pm EST
        Game(season=SEASON, week=9, home_team="BUF", away_team="MIA", kickoff=utc(2024, 11, 3, 18, 0)),
        # Sunday 4:25pm EST
        Game(season=SEASON, week=9, home_team="ARI", away_team="CHI", kickoff=utc(2024, 11, 3, 21, 25)),
        # Monday night
        Game(season=SEASON, week=9, home_team="KC", away_team="TB", kickoff=utc(2024, 11, 5, 1, 15)),
    ]


def week9_anchor() -> WeekAnchor:
    return WeekAnchor(season=SEASON, week=9, anchor_date=date(2024, 11, 3))
