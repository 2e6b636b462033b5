from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

FeatureRecord = dict[str, Any]


class ChangeType(str, Enum):
    NEW_FEATURE = "new_feature"
    DATE_CHANGE = "date_change"
    WAVE_CHANGE = "wave_change"
    DESCRIPTION_CHANGE = "description_change"
    STATUS_CHANGE = "status_change"


class ComparisonStatus(str, Enum):
    NEW = "new"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class FieldDiff:
    field: str
    old_value: str
    new_value: str


@dataclass(frozen=True)
class Comparison:
    status: ComparisonStatus
    diffs: tuple[FieldDiff, ...] = ()


@dataclass(frozen=True)
class PriorSnapshot:
    """Latest stored snapshot for one key."""

    release_plan_id: str
    record: FeatureRecord
    fetched_at: datetime


@dataclass(frozen=True)
class SnapshotRow:
    release_plan_id: str
    snapshot_data: FeatureRecord
    fetched_at: datetime


@dataclass(frozen=True)
class ChangeLogRow:
    change_key: str
    release_plan_id: str
    feature_name: str
    product_name: str
    change_type: ChangeType
    field_changed: Optional[str]
    old_value: Optional[str]
    new_value: Optional[str]
    detected_at: datetime


@dataclass(frozen=True)
class FeedPayload:
    fetched_at: str  # ISO8601
    source_url: str
    results: list[FeatureRecord] = field(default_factory=list)


@dataclass(frozen=True)
class RunResult:
    total: int
    new_count: int
    changed_count: int
    baseline: bool
    message: Optional[str] = None
