"""Canonical survivor pool models shared across the engine, store and API."""

from .game import TIE, Game, GameStatus, WeekAnchor
from .pick import Outcome, Pick
from .pool import DeadlineMode, Member, PoolRules, TieRule

__all__ = [
    "TIE",
    "DeadlineMode",
    "Game",
    "GameStatus",
    "Member",
    "Outcome",
    "Pick",
    "PoolRules",
    "TieRule",
    "WeekAnchor",
]
