"""Helpers to load schedule/score and week-anchor feeds into canonical records."""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ValidationError

from pysurvivor.models import Game, WeekAnchor


logger = logging.getLogger(__name__)

DEFAULT_GAME_MAPPING = {
    "season": "season",
    "week": "week",
    "home_team": "home_team",
    "away_team": "away_team",
    "kickoff": "game_time",
    "status": "status",
    "winner": "winner",
}

DEFAULT_ANCHOR_MAPPING = {
    "season": "season",
    "week": "week",
    "anchor_date": "week_sunday_date",
}

# Keys accepted in JSON records besides the canonical field names.
_JSON_ALIASES = {
    "homeTeamCode": "home_team",
    "awayTeamCode": "away_team",
    "kickoffInstant": "kickoff",
    "game_time": "kickoff",
    "anchorDate": "anchor_date",
    "week_sunday_date": "anchor_date",
}


class FeedRow(BaseModel):
    """Raw strings for one schedule row before validation."""

    raw_season: str = ""
    raw_week: str = ""
    raw_home: str = ""
    raw_away: str = ""
    raw_kickoff: str = ""
    raw_status: Optional[str] = None
    raw_winner: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, str], mapping: Mapping[str, str]) -> "FeedRow":
        def extract(key: str) -> Optional[str]:
            column = mapping.get(key, DEFAULT_GAME_MAPPING.get(key))
            if column is None:
                return None
            value = row.get(column)
            return value.strip() if value is not None else None

        return cls(
            raw_season=extract("season") or "",
            raw_week=extract("week") or "",
            raw_home=extract("home_team") or "",
            raw_away=extract("away_team") or "",
            raw_kickoff=extract("kickoff") or "",
            raw_status=extract("status"),
            raw_winner=extract("winner"),
        )

    def label(self) -> str:
        return f"{self.raw_season} wk{self.raw_week} {self.raw_away}@{self.raw_home}"


@dataclass
class FeedReport:
    total_rows: int = 0
    loaded_rows: int = 0
    skipped_rows: List[str] = field(default_factory=list)

    def skip(self, label: str, reason: str) -> None:
        self.skipped_rows.append(f"{label}: {reason}")
        logger.warning("Skipping feed row %s: %s", label, reason)


def parse_kickoff(raw: str) -> datetime:
    """Parse an ISO-8601 instant; a trailing ``Z`` is accepted as UTC."""

    text = raw.strip()
    if not text:
        raise ValueError("kickoff is empty")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _error_text(exc: ValidationError | ValueError) -> str:
    if isinstance(exc, ValidationError):
        return "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors())
    return str(exc)


def rows_to_games(rows: Sequence[FeedRow]) -> Tuple[List[Game], FeedReport]:
    games: List[Game] = []
    report = FeedReport(total_rows=len(rows))
    for row in rows:
        try:
            game = Game(
                season=int(row.raw_season),
                week=int(row.raw_week),
                home_team=row.raw_home,
                away_team=row.raw_away,
                kickoff=parse_kickoff(row.raw_kickoff),
                status=row.raw_status or "scheduled",
                winner=row.raw_winner or None,
            )
        except (ValidationError, ValueError) as exc:
            report.skip(row.label(), _error_text(exc))
            continue
        games.append(game)
    report.loaded_rows = len(games)
    return games, report


def load_games_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> Tuple[List[Game], FeedReport]:
    mapping = mapping or DEFAULT_GAME_MAPPING
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = [FeedRow.from_mapping(row, mapping) for row in reader]
    return rows_to_games(rows)


def _canonical_keys(record: Mapping[str, Any]) -> dict[str, Any]:
    return {_JSON_ALIASES.get(key, key): value for key, value in record.items()}


def records_to_games(records: Iterable[Mapping[str, Any]]) -> Tuple[List[Game], FeedReport]:
    """Validate feed records shaped like ``{season, week, homeTeamCode, ...}``."""

    games: List[Game] = []
    report = FeedReport()
    for record in records:
        report.total_rows += 1
        data = _canonical_keys(record)
        label = f"{data.get('season')} wk{data.get('week')} {data.get('away_team')}@{data.get('home_team')}"
        try:
            if isinstance(data.get("kickoff"), str):
                data["kickoff"] = parse_kickoff(data["kickoff"])
            games.append(Game.model_validate(data))
        except (ValidationError, ValueError) as exc:
            report.skip(label, _error_text(exc))
    report.loaded_rows = len(games)
    return games, report


def _load_json_list(path: Path) -> list:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc
    if isinstance(payload, dict):
        payload = payload.get("games") or payload.get("weeks") or payload.get("records") or []
    if not isinstance(payload, list):
        raise ValueError(f"{path} must hold a list of records")
    return payload


def load_games_json(path: Path) -> Tuple[List[Game], FeedReport]:
    return records_to_games(_load_json_list(path))


def records_to_anchors(records: Iterable[Mapping[str, Any]]) -> Tuple[List[WeekAnchor], FeedReport]:
    anchors: List[WeekAnchor] = []
    report = FeedReport()
    for record in records:
        report.total_rows += 1
        data = _canonical_keys(record)
        try:
            if isinstance(data.get("anchor_date"), str):
                data["anchor_date"] = date.fromisoformat(data["anchor_date"].strip()[:10])
            anchors.append(WeekAnchor.model_validate(data))
        except (ValidationError, ValueError) as exc:
            report.skip(f"{data.get('season')} wk{data.get('week')}", _error_text(exc))
    report.loaded_rows = len(anchors)
    return anchors, report


def load_anchors_file(path: Path, *, mapping: Mapping[str, str] | None = None) -> Tuple[List[WeekAnchor], FeedReport]:
    """Load week anchors from a ``.json`` list or a CSV with season/week/date columns."""

    if path.suffix.lower() == ".json":
        return records_to_anchors(_load_json_list(path))
    mapping = mapping or DEFAULT_ANCHOR_MAPPING
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        records = [
            {key: (row.get(column) or "").strip() for key, column in mapping.items()}
            for row in reader
        ]
    return records_to_anchors(records)


def load_games_file(path: Path, *, mapping: Mapping[str, str] | None = None) -> Tuple[List[Game], FeedReport]:
    if path.suffix.lower() == ".json":
        return load_games_json(path)
    return load_games_csv(path, mapping=mapping)
