from __future__ import annotations

from pydantic import BaseModel, Field


class PoolRulesRequest(BaseModel):
    season: int
    name: str = ""
    strikes_allowed: int = Field(default=1, ge=0)
    tie_rule: str = "push"
    deadline_mode: str = "rolling"
    fixed_local_time: str | None = None
    start_week: int = Field(default=1, ge=1)
    include_playoffs: bool = False


class PoolRulesResponse(PoolRulesRequest):
    pool_id: str


class MemberRequest(BaseModel):
    display_name: str = ""
    avatar_url: str | None = None


class MemberResponse(MemberRequest):
    pool_id: str
    member_id: str
