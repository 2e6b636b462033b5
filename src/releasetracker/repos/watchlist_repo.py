"""Watchlist Repository."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from releasetracker.db.schema import WatchlistItem

IMPACTS = ("🔴 High", "🟡 Medium", "🟢 Low", "🚩 To Review")
ANALYSIS_STATUSES = ("Not Applicable", "In Progress", "Reviewed")
# "" clears the flag
FLAGGED_FOR = ("Business", "Tech Team", "Both", "")

DEFAULT_IMPACT = "🚩 To Review"
DEFAULT_ANALYSIS_STATUS = "In Progress"


class WatchlistRepository:
    """Repository for watchlist table operations."""

    def __init__(self, session: Session):
        self.session = session

    def list_items(self) -> List[WatchlistItem]:
        return (
            self.session.query(WatchlistItem)
            .order_by(WatchlistItem.added_at.desc())
            .all()
        )

    def get(self, release_plan_id: str) -> Optional[WatchlistItem]:
        return (
            self.session.query(WatchlistItem)
            .filter(WatchlistItem.release_plan_id == release_plan_id)
            .first()
        )

    def upsert(self, release_plan_id: str, feature_name: str, product_name: str) -> WatchlistItem:
        """Add a feature, or reset an existing entry to the review defaults."""
        item = self.get(release_plan_id)
        if item is None:
            item = WatchlistItem(
                release_plan_id=release_plan_id,
                feature_name=feature_name,
                product_name=product_name,
                impact=DEFAULT_IMPACT,
                analysis_status=DEFAULT_ANALYSIS_STATUS,
                flagged_for=None,
                added_at=datetime.utcnow(),
            )
            self.session.add(item)
        else:
            item.feature_name = feature_name
            item.product_name = product_name
            item.impact = DEFAULT_IMPACT
            item.analysis_status = DEFAULT_ANALYSIS_STATUS
        self.session.commit()
        return item

    def delete(self, release_plan_id: str) -> None:
        self.session.execute(
            delete(WatchlistItem).where(WatchlistItem.release_plan_id == release_plan_id)
        )
        self.session.commit()

    def set_impact(self, release_plan_id: str, impact: str) -> bool:
        return self._update(release_plan_id, impact=impact)

    def set_analysis_status(self, release_plan_id: str, analysis_status: str) -> bool:
        return self._update(release_plan_id, analysis_status=analysis_status)

    def set_flagged_for(self, release_plan_id: str, flagged_for: str) -> bool:
        return self._update(release_plan_id, flagged_for=flagged_for or None)

    def _update(self, release_plan_id: str, **values) -> bool:
        """Returns False when the item is not on the watchlist."""
        item = self.get(release_plan_id)
        if item is None:
            return False
        for name, value in values.items():
            setattr(item, name, value)
        self.session.commit()
        return True
