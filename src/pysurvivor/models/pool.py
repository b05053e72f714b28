"""Pool rules and roster records."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class TieRule(str, Enum):
    WIN = "win"
    LOSS = "loss"
    PUSH = "push"


class DeadlineMode(str, Enum):
    ROLLING = "rolling"
    HYBRID = "hybrid"


_HYBRID_ALIASES = {"fixed", "hybrid-fixed", "hybrid_fixed"}


class PoolRules(BaseModel):
    """Scoring and deadline policy for one pool in one season."""

    pool_id: str = Field(..., min_length=1)
    season: int
    name: str = ""
    strikes_allowed: int = Field(default=1, ge=0)
    tie_rule: TieRule = TieRule.PUSH
    deadline_mode: DeadlineMode = DeadlineMode.ROLLING
    fixed_local_time: str | None = None
    start_week: int = Field(default=1, ge=1)
    include_playoffs: bool = False

    model_config = ConfigDict(frozen=True)

    @field_validator("deadline_mode", mode="before")
    @classmethod
    def _accept_fixed_alias(cls, value: object) -> object:
        # Older pool rows call the hybrid policy "fixed".
        if isinstance(value, str) and value.strip().lower() in _HYBRID_ALIASES:
            return DeadlineMode.HYBRID
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("tie_rule", mode="before")
    @classmethod
    def _lowercase_tie_rule(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("fixed_local_time")
    @classmethod
    def _blank_time_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class Member(BaseModel):
    member_id: str = Field(..., min_length=1)
    display_name: str = ""
    avatar_url: str | None = None

    model_config = ConfigDict(frozen=True)
