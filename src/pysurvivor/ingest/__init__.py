"""Input adapters that normalize raw schedule, score and week-anchor data."""

from .feed import (
    FeedReport,
    FeedRow,
    load_anchors_file,
    load_games_csv,
    load_games_file,
    load_games_json,
    parse_kickoff,
    records_to_anchors,
    records_to_games,
    rows_to_games,
)

__all__ = [
    "FeedReport",
    "FeedRow",
    "load_anchors_file",
    "load_games_csv",
    "load_games_file",
    "load_games_json",
    "parse_kickoff",
    "records_to_anchors",
    "records_to_games",
    "rows_to_games",
]
