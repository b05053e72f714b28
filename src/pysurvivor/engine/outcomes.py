"""Classify a game result relative to the team a member picked."""

from __future__ import annotations

import logging

from pysurvivor.config import canonical_team
from pysurvivor.models import TIE, Game, Outcome, TieRule


logger = logging.getLogger(__name__)

_TIE_OUTCOMES = {
    TieRule.WIN: Outcome.WIN,
    TieRule.LOSS: Outcome.LOSS,
    TieRule.PUSH: Outcome.PUSH,
}


def resolve(game: Game | None, picked_team: str, tie_rule: TieRule) -> Outcome:
    """Return Win/Loss/Push/Pending for ``picked_team`` in ``game``.

    Anything short of a final game with a usable winner is ``Pending``: a
    missing game, a game still scheduled or in progress, a final game with no
    winner recorded, or a winner code that matches neither side.
    """

    if game is None or not game.is_final or not game.winner:
        return Outcome.PENDING

    team = canonical_team(picked_team)
    if not game.involves(team):
        logger.warning(
            "Picked team %s is not in game %s@%s week %s", team, game.away_team, game.home_team, game.week
        )
        return Outcome.PENDING

    if game.winner == TIE:
        return _TIE_OUTCOMES[TieRule(tie_rule)]
    if game.winner == team:
        return Outcome.WIN
    if game.winner == game.opponent_of(team):
        return Outcome.LOSS

    logger.warning(
        "Winner %s matches neither side of %s@%s week %s; treating as pending",
        game.winner,
        game.away_team,
        game.home_team,
        game.week,
    )
    return Outcome.PENDING


def counts_as_strike(outcome: Outcome) -> bool:
    return outcome is Outcome.LOSS
