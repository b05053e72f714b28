"""Pick records and the outcome classification applied to them."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from pysurvivor.config import canonical_team


class Outcome(str, Enum):
    """Result of a pick once its game is (or is not yet) final."""

    WIN = "win"
    LOSS = "loss"
    PUSH = "push"
    PENDING = "pending"


class Pick(BaseModel):
    """One member's team for one week; at most one per (pool, member, week)."""

    pool_id: str = Field(..., min_length=1)
    member_id: str = Field(..., min_length=1)
    week: int = Field(..., ge=1)
    team: str = Field(..., min_length=1)
    updated_at: datetime | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("team", mode="before")
    @classmethod
    def _canonical_team(cls, value: object) -> object:
        return canonical_team(value) if isinstance(value, str) else value

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.pool_id, self.member_id, self.week)
