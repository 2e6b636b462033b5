"""Errors raised by a change-detection run."""

from __future__ import annotations


class ReleaseTrackerError(Exception):
    """Base error for the tracker."""


class FeedUnavailable(ReleaseTrackerError):
    """Upstream release plans feed failed or returned an unexpected shape."""


class StoreUnavailable(ReleaseTrackerError):
    """A read against the snapshot store failed."""


class PersistenceFailure(ReleaseTrackerError):
    """A batch insert failed. Batches before `batch_index` are committed."""

    def __init__(self, table: str, batch_index: int, batch_size: int, detail: str) -> None:
        self.table = table
        self.batch_index = batch_index
        self.batch_size = batch_size
        self.detail = detail
        super().__init__(
            f"Insert into {table} failed at batch {batch_index} ({batch_size} rows): {detail}"
        )
