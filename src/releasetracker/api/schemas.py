"""API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class RefreshResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    new_count: int = Field(alias="newCount")
    changed_count: int = Field(alias="changedCount")
    baseline: bool
    message: Optional[str] = None


class FeedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fetched_at: str = Field(alias="fetchedAt")
    source_url: str = Field(alias="sourceUrl")
    results: list[dict[str, Any]]


class ChangeOut(BaseModel):
    id: str
    release_plan_id: str
    feature_name: str
    product_name: str
    change_type: str
    field_changed: Optional[str]
    old_value: Optional[str]
    new_value: Optional[str]
    detected_at: datetime


class WatchlistItemOut(BaseModel):
    release_plan_id: str
    feature_name: str
    product_name: str
    impact: str
    analysis_status: str
    flagged_for: Optional[str]
    added_at: datetime


class _LooseRequest(BaseModel):
    # ids sometimes arrive as numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)


class WatchlistAddRequest(_LooseRequest):
    release_plan_id: Optional[str] = None
    feature_name: Optional[str] = None
    product_name: Optional[str] = None


class WatchlistDeleteRequest(_LooseRequest):
    release_plan_id: Optional[str] = None


class ImpactUpdate(_LooseRequest):
    release_plan_id: Optional[str] = None
    impact: Optional[str] = None


class FlaggedForUpdate(_LooseRequest):
    release_plan_id: Optional[str] = None
    flagged_for: Optional[str] = None


class AnalysisStatusUpdate(_LooseRequest):
    release_plan_id: Optional[str] = None
    analysis_status: Optional[str] = None


class NoteOut(BaseModel):
    id: str
    release_plan_id: str
    author_name: str
    content: str
    created_at: datetime


class NoteCreateRequest(_LooseRequest):
    release_plan_id: Optional[str] = None
    author_name: Optional[str] = None
    content: Optional[str] = None


class OkResponse(BaseModel):
    ok: bool = True
