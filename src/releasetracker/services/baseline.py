"""Decides whether a run seeds the store (baseline) or diffs against it."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from releasetracker.services.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


class SnapshotCounter(Protocol):
    def count_all(self) -> int:
        ...


def is_baseline(store: SnapshotCounter) -> bool:
    """True iff the snapshot store holds no snapshot at all."""
    try:
        count = store.count_all()
    except SQLAlchemyError as e:
        logger.error("Snapshot count failed: %s", e)
        raise StoreUnavailable(f"Snapshot count failed: {e}") from e
    return count == 0
