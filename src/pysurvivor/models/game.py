"""Schedule and score records consumed by the engine."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict

from pysurvivor.config import canonical_team


TIE = "TIE"


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINAL = "final"


_STATUS_ALIASES = {
    "in-progress": GameStatus.IN_PROGRESS,
    "inprogress": GameStatus.IN_PROGRESS,
    "live": GameStatus.IN_PROGRESS,
    "closed": GameStatus.FINAL,
    "complete": GameStatus.FINAL,
    "completed": GameStatus.FINAL,
}


class Game(BaseModel):
    """One matchup in one week, keyed by (season, week, home, away)."""

    season: int
    week: int = Field(..., ge=1)
    home_team: str = Field(..., min_length=1)
    away_team: str = Field(..., min_length=1)
    kickoff: datetime
    status: GameStatus = GameStatus.SCHEDULED
    winner: str | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("home_team", "away_team", mode="before")
    @classmethod
    def _canonical_codes(cls, value: object) -> object:
        return canonical_team(value) if isinstance(value, str) else value

    @field_validator("kickoff")
    @classmethod
    def _kickoff_in_utc(cls, value: datetime) -> datetime:
        # Feed instants are UTC; a naive timestamp is read as UTC rather than server-local.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator("status", mode="before")
    @classmethod
    def _status_aliases(cls, value: object) -> object:
        if isinstance(value, str):
            key = value.strip().lower()
            return _STATUS_ALIASES.get(key, key)
        return value

    @model_validator(mode="before")
    @classmethod
    def _normalize_winner(cls, data: object) -> object:
        if not isinstance(data, dict):
            return data
        raw = data.get("winner")
        if raw is None:
            return data
        text = str(raw).strip()
        data = dict(data)
        if not text:
            data["winner"] = None
        elif text.upper() in {TIE, "T", "DRAW"}:
            data["winner"] = TIE
        elif text.lower() == "home":
            data["winner"] = canonical_team(str(data.get("home_team", "")))
        elif text.lower() == "away":
            data["winner"] = canonical_team(str(data.get("away_team", "")))
        else:
            data["winner"] = canonical_team(text)
        return data

    @property
    def key(self) -> tuple[int, int, str, str]:
        return (self.season, self.week, self.home_team, self.away_team)

    @property
    def is_final(self) -> bool:
        return self.status is GameStatus.FINAL

    def involves(self, team: str) -> bool:
        code = canonical_team(team)
        return code in (self.home_team, self.away_team)

    def opponent_of(self, team: str) -> str | None:
        code = canonical_team(team)
        if code == self.home_team:
            return self.away_team
        if code == self.away_team:
            return self.home_team
        return None


class WeekAnchor(BaseModel):
    """Reference Sunday used to place a hybrid pool's fixed lock time."""

    season: int
    week: int = Field(..., ge=1)
    anchor_date: date

    model_config = ConfigDict(frozen=True)
