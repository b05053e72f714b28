"""Configuration helpers for teams and runtime settings."""

from . import settings
from .teams import Team, canonical_team, is_known_team, iter_teams, team_name

__all__ = [
    "Team",
    "canonical_team",
    "is_known_team",
    "iter_teams",
    "settings",
    "team_name",
]
