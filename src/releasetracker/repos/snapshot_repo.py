"""Snapshot Repository."""

from __future__ import annotations

import json
import logging
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from releasetracker.db.schema import FeatureSnapshot
from releasetracker.models.domain import PriorSnapshot, SnapshotRow

logger = logging.getLogger(__name__)

# keeps IN (...) lists bounded
KEY_CHUNK_SIZE = 500


class SnapshotRepository:
    """Append-only access to the feature_snapshots table."""

    def __init__(self, session: Session):
        self.session = session

    def count_all(self) -> int:
        return int(
            self.session.execute(
                select(func.count()).select_from(FeatureSnapshot)
            ).scalar_one()
        )

    def insert_snapshots(self, rows: Sequence[SnapshotRow]) -> None:
        """Insert one batch and commit. Rolls back and re-raises on failure."""
        if not rows:
            return
        try:
            self.session.add_all(
                [
                    FeatureSnapshot(
                        release_plan_id=r.release_plan_id,
                        snapshot_json=json.dumps(r.snapshot_data, ensure_ascii=False, default=str),
                        fetched_at=r.fetched_at,
                    )
                    for r in rows
                ]
            )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def latest_by_keys(self, keys: Sequence[str]) -> dict[str, PriorSnapshot]:
        """
        Latest snapshot per key (max fetched_at), at most one row per key.

        The ranking happens in SQL via row_number() so we never pull the full
        history of a key into Python.
        """
        out: dict[str, PriorSnapshot] = {}
        unique_keys = list(dict.fromkeys(keys))

        for start in range(0, len(unique_keys), KEY_CHUNK_SIZE):
            chunk = unique_keys[start:start + KEY_CHUNK_SIZE]
            ranked = (
                select(
                    FeatureSnapshot.release_plan_id,
                    FeatureSnapshot.snapshot_json,
                    FeatureSnapshot.fetched_at,
                    func.row_number()
                    .over(
                        partition_by=FeatureSnapshot.release_plan_id,
                        order_by=(FeatureSnapshot.fetched_at.desc(), FeatureSnapshot.snapshot_id.desc()),
                    )
                    .label("rn"),
                )
                .where(FeatureSnapshot.release_plan_id.in_(chunk))
                .subquery()
            )
            rows = self.session.execute(
                select(ranked.c.release_plan_id, ranked.c.snapshot_json, ranked.c.fetched_at)
                .where(ranked.c.rn == 1)
            ).all()

            for release_plan_id, snapshot_json, fetched_at in rows:
                out[release_plan_id] = PriorSnapshot(
                    release_plan_id=release_plan_id,
                    record=_decode(release_plan_id, snapshot_json),
                    fetched_at=fetched_at,
                )
        return out


def _decode(release_plan_id: str, snapshot_json: str | None) -> dict:
    if not snapshot_json:
        return {}
    try:
        data = json.loads(snapshot_json)
    except json.JSONDecodeError:
        logger.warning("Unreadable snapshot for %s, treating as empty", release_plan_id)
        return {}
    return data if isinstance(data, dict) else {}
