"""Team catalogue and code normalization for schedule and pick data."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple


@dataclass(frozen=True)
class Team:
    code: str
    name: str
    aliases: Tuple[str, ...] = ()


_TEAMS: Dict[str, Team] = {
    team.code: team
    for team in (
        Team("ARI", "Arizona Cardinals", ("ARIZONA", "CARDINALS", "ARIZONA CARDS")),
        Team("ATL", "Atlanta Falcons", ("ATLANTA", "FALCONS")),
        Team("BAL", "Baltimore Ravens", ("BALTIMORE", "RAVENS")),
        Team("BUF", "Buffalo Bills", ("BUFFALO", "BILLS")),
        Team("CAR", "Carolina Panthers", ("CAROLINA", "PANTHERS")),
        Team("CHI", "Chicago Bears", ("CHICAGO", "BEARS")),
        Team("CIN", "Cincinnati Bengals", ("CINCINNATI", "BENGALS")),
        Team("CLE", "Cleveland Browns", ("CLEVELAND", "BROWNS")),
        Team("DAL", "Dallas Cowboys", ("DALLAS", "COWBOYS")),
        Team("DEN", "Denver Broncos", ("DENVER", "BRONCOS")),
        Team("DET", "Detroit Lions", ("DETROIT", "LIONS")),
        Team("GB", "Green Bay Packers", ("GNB", "GREEN BAY", "PACKERS")),
        Team("HOU", "Houston Texans", ("HOUSTON", "TEXANS")),
        Team("IND", "Indianapolis Colts", ("INDIANAPOLIS", "COLTS")),
        Team("JAX", "Jacksonville Jaguars", ("JAC", "JACKSONVILLE", "JAGUARS")),
        Team("KC", "Kansas City Chiefs", ("KAN", "KANSAS CITY", "CHIEFS")),
        Team("LV", "Las Vegas Raiders", ("LVR", "OAK", "LAS VEGAS", "OAKLAND", "OAKLAND RAIDERS", "RAIDERS")),
        Team("LAC", "Los Angeles Chargers", ("SD", "LA CHARGERS", "SAN DIEGO", "SAN DIEGO CHARGERS", "CHARGERS")),
        Team("LAR", "Los Angeles Rams", ("LA", "STL", "LA RAMS", "ST LOUIS", "ST LOUIS RAMS", "RAMS")),
        Team("MIA", "Miami Dolphins", ("MIAMI", "DOLPHINS")),
        Team("MIN", "Minnesota Vikings", ("MINNESOTA", "VIKINGS")),
        Team("NE", "New England Patriots", ("NWE", "NEW ENGLAND", "PATRIOTS")),
        Team("NO", "New Orleans Saints", ("NOR", "NEW ORLEANS", "SAINTS")),
        Team("NYG", "New York Giants", ("NY GIANTS", "GIANTS")),
        Team("NYJ", "New York Jets", ("NY JETS", "JETS")),
        Team("PHI", "Philadelphia Eagles", ("PHILA", "PHILADELPHIA", "EAGLES")),
        Team("PIT", "Pittsburgh Steelers", ("PITTSBURGH", "STEELERS")),
        Team("SF", "San Francisco 49ers", ("SFO", "SAN FRANCISCO", "SF 49ERS", "49ERS", "NINERS")),
        Team("SEA", "Seattle Seahawks", ("SEATTLE", "SEAHAWKS")),
        Team("TB", "Tampa Bay Buccaneers", ("TAM", "TAMPA BAY", "BUCCANEERS", "BUCS")),
        Team("TEN", "Tennessee Titans", ("TENNESSEE", "TITANS")),
        Team("WAS", "Washington Commanders", ("WSH", "WASHINGTON", "WASHINGTON FOOTBALL TEAM", "COMMANDERS")),
    )
}


def _team_token(value: str) -> str:
    return re.sub(r"[^A-Z0-9]", "", value.upper())


def _build_alias_lookup() -> dict[str, str]:
    lookup: dict[str, str] = {}
    for team in _TEAMS.values():
        for variant in (team.code, team.name, *team.aliases):
            key = _team_token(variant)
            if key:
                lookup.setdefault(key, team.code)
    return lookup


TEAM_ALIAS_LOOKUP = _build_alias_lookup()


def canonical_team(value: str) -> str:
    """Map a feed or client team string onto its canonical code.

    Matching ignores case, whitespace and punctuation. Strings that match no
    known team come back as the upper-cased token so two spellings of an
    unknown code still compare equal.
    """

    token = _team_token(value or "")
    if not token:
        return ""
    return TEAM_ALIAS_LOOKUP.get(token, token)


def is_known_team(value: str) -> bool:
    return canonical_team(value) in _TEAMS


def team_name(code: str) -> str:
    """Display name for a code, falling back to the canonical code itself."""

    canonical = canonical_team(code)
    team = _TEAMS.get(canonical)
    return team.name if team else canonical


def iter_teams() -> Iterable[Team]:
    return _TEAMS.values()
