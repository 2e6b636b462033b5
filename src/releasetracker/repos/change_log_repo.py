"""Change Log Repository."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from releasetracker.db.schema import ChangeLog
from releasetracker.models.domain import ChangeLogRow


class ChangeLogRepository:
    """Append-only access to the change_log table."""

    def __init__(self, session: Session):
        self.session = session

    def insert_entries(self, rows: Sequence[ChangeLogRow]) -> int:
        """
        Insert one batch and commit; returns the number of rows written.

        Rows whose change_key is already stored are skipped, which makes a
        retried run safe.
        """
        if not rows:
            return 0
        try:
            keys = [r.change_key for r in rows]
            existing = set(
                self.session.execute(
                    select(ChangeLog.change_key).where(ChangeLog.change_key.in_(keys))
                ).scalars()
            )
            fresh = {r.change_key: r for r in rows if r.change_key not in existing}
            self.session.add_all(
                [
                    ChangeLog(
                        change_key=r.change_key,
                        release_plan_id=r.release_plan_id,
                        feature_name=r.feature_name,
                        product_name=r.product_name,
                        change_type=r.change_type.value,
                        field_changed=r.field_changed,
                        old_value=r.old_value,
                        new_value=r.new_value,
                        detected_at=r.detected_at,
                    )
                    for r in fresh.values()
                ]
            )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return len(fresh)

    def list_recent(self, days: int, limit: int = 500, now: Optional[datetime] = None) -> List[ChangeLog]:
        """Entries detected within the last `days` days, newest first."""
        cutoff = (now or datetime.utcnow()) - timedelta(days=days)
        return (
            self.session.query(ChangeLog)
            .filter(ChangeLog.detected_at >= cutoff)
            .order_by(ChangeLog.detected_at.desc())
            .limit(limit)
            .all()
        )
