"""Change log API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from releasetracker.api.deps import get_db
from releasetracker.api.schemas import ChangeOut
from releasetracker.repos.change_log_repo import ChangeLogRepository

router = APIRouter(prefix="/changes", tags=["changes"])

MAX_ROWS = 500


@router.get("", response_model=list[ChangeOut])
def list_changes(
    days: int = Query(14),
    session: Session = Depends(get_db),
):
    # out-of-range values are clamped, not rejected
    days = max(1, min(90, days))
    rows = ChangeLogRepository(session).list_recent(days=days, limit=MAX_ROWS)
    return [
        ChangeOut(
            id=c.change_id,
            release_plan_id=c.release_plan_id,
            feature_name=c.feature_name,
            product_name=c.product_name,
            change_type=c.change_type,
            field_changed=c.field_changed,
            old_value=c.old_value,
            new_value=c.new_value,
            detected_at=c.detected_at,
        )
        for c in rows
    ]
