from __future__ import annotations

from typing import List

from pydantic import BaseModel


class MemberStandingResponse(BaseModel):
    member_id: str
    display_name: str
    avatar_url: str | None
    wins: int
    losses: int
    pushes: int
    record: str
    strikes: int
    strikes_remaining: int
    alive: bool
    eliminated_week: int | None
    week_pick: str | None
    week_outcome: str | None


class StandingsResponse(BaseModel):
    pool_id: str
    through_week: int
    strikes_allowed: int
    alive_count: int
    eliminated_count: int
    entries: List[MemberStandingResponse]
