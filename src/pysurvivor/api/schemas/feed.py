from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, Field


class FeedUploadRequest(BaseModel):
    records: List[dict[str, Any]] = Field(default_factory=list)


class FeedReportResponse(BaseModel):
    total_rows: int
    loaded_rows: int
    skipped_rows: List[str] = Field(default_factory=list)
