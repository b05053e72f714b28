from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class PickRequest(BaseModel):
    team: str = Field(..., min_length=1)


class PickResponse(BaseModel):
    pool_id: str
    member_id: str
    week: int
    team: str
    team_name: str
    lock_at: datetime | None
    committed: bool
    updated_at: datetime | None = None


class MemberPicksResponse(BaseModel):
    pool_id: str
    member_id: str
    picks: List[PickResponse]
    used_teams: List[str]


class ClearAllResponse(BaseModel):
    cleared: List[int]
    skipped: List[int]


class MatchupLockResponse(BaseModel):
    home_team: str
    away_team: str
    kickoff: datetime
    status: str
    lock_at: datetime
    locked: bool


class LockInfoResponse(BaseModel):
    pool_id: str
    week: int
    deadline_mode: str
    checked_at: datetime
    fixed_local_time: str | None
    fixed_lock_at: datetime | None
    lock_at: datetime | None
    locked: bool
    seconds_remaining: float | None
    pick: PickResponse | None = None
    matchups: List[MatchupLockResponse]
