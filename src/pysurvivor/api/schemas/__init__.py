"""Pydantic models for API I/O."""

from .feed import FeedReportResponse, FeedUploadRequest
from .picks import (
    ClearAllResponse,
    LockInfoResponse,
    MatchupLockResponse,
    MemberPicksResponse,
    PickRequest,
    PickResponse,
)
from .pools import MemberRequest, MemberResponse, PoolRulesRequest, PoolRulesResponse
from .standings import MemberStandingResponse, StandingsResponse

__all__ = [
    "ClearAllResponse",
    "FeedReportResponse",
    "FeedUploadRequest",
    "LockInfoResponse",
    "MatchupLockResponse",
    "MemberPicksResponse",
    "MemberRequest",
    "MemberResponse",
    "MemberStandingResponse",
    "PickRequest",
    "PickResponse",
    "PoolRulesRequest",
    "PoolRulesResponse",
    "StandingsResponse",
]
