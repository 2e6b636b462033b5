"""
One change-detection pass over the release plans feed.

Flow:
- baseline check (is the snapshot store empty?)
- fetch the feed
- baseline: seed one snapshot per keyed record, log nothing
- incremental: diff each record against its latest snapshot, log changes,
  append a snapshot for every new or changed record

Writes go out in fixed-size batches, change log first, snapshots second.
Change-log rows carry a deterministic `change_key`, so a run retried after a
partial failure re-emits missing entries without duplicating committed ones.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional, Protocol, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from releasetracker.config.settings import settings
from releasetracker.models.domain import (
    ChangeLogRow,
    ChangeType,
    ComparisonStatus,
    FeatureRecord,
    FeedPayload,
    PriorSnapshot,
    RunResult,
    SnapshotRow,
)
from releasetracker.repos.change_log_repo import ChangeLogRepository
from releasetracker.repos.snapshot_repo import SnapshotRepository
from releasetracker.services.baseline import is_baseline
from releasetracker.services.classifier import classify
from releasetracker.services.comparator import compare
from releasetracker.services.exceptions import FeedUnavailable, PersistenceFailure, StoreUnavailable
from releasetracker.services.feature_keys import display_name, extract_key, product_name

logger = logging.getLogger(__name__)

BASELINE_MESSAGE = "Baseline snapshots created. No changes logged on first sync."

T = TypeVar("T")


class SnapshotStore(Protocol):
    def count_all(self) -> int:
        ...

    def insert_snapshots(self, rows: Sequence[SnapshotRow]) -> None:
        ...

    def latest_by_keys(self, keys: Sequence[str]) -> dict[str, PriorSnapshot]:
        """At most one row per key: the one with the greatest fetched_at."""
        ...


class ChangeLogStore(Protocol):
    def insert_entries(self, rows: Sequence[ChangeLogRow]) -> int:
        ...


FeedFetcher = Callable[[], FeedPayload]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def change_key(
    release_plan_id: str,
    field_changed: Optional[str],
    prior_fetched_at: Optional[datetime],
    new_value: Optional[str],
) -> str:
    parts = [
        release_plan_id,
        field_changed or "",
        prior_fetched_at.isoformat() if prior_fetched_at else "new",
        new_value or "",
    ]
    return hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()


def iter_batches(rows: Sequence[T], size: int) -> Iterator[tuple[int, Sequence[T]]]:
    for index, start in enumerate(range(0, len(rows), size)):
        yield index, rows[start:start + size]


class ChangeDetectionRun:
    """Orchestrates a single run. Not safe to execute concurrently; see RunLock."""

    def __init__(
        self,
        snapshots: SnapshotStore,
        change_log: ChangeLogStore,
        fetch_features: FeedFetcher,
        batch_size: int | None = None,
        max_value_chars: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.snapshots = snapshots
        self.change_log = change_log
        self.fetch_features = fetch_features
        self.batch_size = batch_size or settings.batch_size
        self.max_value_chars = max_value_chars or settings.value_max_chars
        self.clock = clock

    def execute(self) -> RunResult:
        baseline = is_baseline(self.snapshots)
        logger.info("Baseline run: %s", baseline)

        features = self._fetch()
        logger.info("Fetched %d features", len(features))

        if baseline:
            return self._run_baseline(features)
        return self._run_incremental(features)

    def _fetch(self) -> list[FeatureRecord]:
        payload = self.fetch_features()
        if not isinstance(payload, FeedPayload) or not isinstance(payload.results, list):
            raise FeedUnavailable("Feed returned an unexpected payload")
        return payload.results

    def _run_baseline(self, features: list[FeatureRecord]) -> RunResult:
        now = self.clock()
        rows = [
            SnapshotRow(release_plan_id=key, snapshot_data=record, fetched_at=now)
            for key, record in _keyed(features)
        ]
        self._persist("feature_snapshots", rows, self.snapshots.insert_snapshots)

        logger.info("Baseline snapshots inserted: %d", len(rows))
        return RunResult(
            total=len(features),
            new_count=0,
            changed_count=0,
            baseline=True,
            message=BASELINE_MESSAGE,
        )

    def _run_incremental(self, features: list[FeatureRecord]) -> RunResult:
        keyed = list(_keyed(features))
        latest = self._latest([key for key, _ in keyed])
        logger.info("Found %d existing snapshots for %d keys", len(latest), len(keyed))

        now = self.clock()
        new_snapshots: list[SnapshotRow] = []
        entries: list[ChangeLogRow] = []
        new_count = 0
        changed_count = 0

        for key, record in keyed:
            prior = latest.get(key)

            if prior is None:
                entries.append(
                    self._entry(key, record, ChangeType.NEW_FEATURE, None, None, None, None, now)
                )
                new_snapshots.append(SnapshotRow(release_plan_id=key, snapshot_data=record, fetched_at=now))
                new_count += 1
                continue

            comparison = compare(record, prior.record, max_chars=self.max_value_chars)
            if comparison.status is ComparisonStatus.UNCHANGED:
                continue

            for diff in comparison.diffs:
                entries.append(
                    self._entry(
                        key,
                        record,
                        classify(diff.field),
                        diff.field,
                        diff.old_value,
                        diff.new_value,
                        prior.fetched_at,
                        now,
                    )
                )
            new_snapshots.append(SnapshotRow(release_plan_id=key, snapshot_data=record, fetched_at=now))
            changed_count += 1

        self._persist("change_log", entries, self.change_log.insert_entries)
        self._persist("feature_snapshots", new_snapshots, self.snapshots.insert_snapshots)

        logger.info("Processed: %d new, %d changed", new_count, changed_count)
        return RunResult(
            total=len(features),
            new_count=new_count,
            changed_count=changed_count,
            baseline=False,
        )

    def _latest(self, keys: list[str]) -> dict[str, PriorSnapshot]:
        if not keys:
            return {}
        try:
            return self.snapshots.latest_by_keys(keys)
        except SQLAlchemyError as e:
            logger.error("Latest snapshot lookup failed: %s", e)
            raise StoreUnavailable(f"Latest snapshot lookup failed: {e}") from e

    def _entry(
        self,
        key: str,
        record: FeatureRecord,
        change_type: ChangeType,
        field_changed: Optional[str],
        old_value: Optional[str],
        new_value: Optional[str],
        prior_fetched_at: Optional[datetime],
        detected_at: datetime,
    ) -> ChangeLogRow:
        return ChangeLogRow(
            change_key=change_key(key, field_changed, prior_fetched_at, new_value),
            release_plan_id=key,
            feature_name=display_name(record),
            product_name=product_name(record),
            change_type=change_type,
            field_changed=field_changed,
            old_value=old_value,
            new_value=new_value,
            detected_at=detected_at,
        )

    def _persist(self, table: str, rows: Sequence[T], insert: Callable[[Sequence[T]], object]) -> None:
        if not rows:
            return
        total_batches = (len(rows) + self.batch_size - 1) // self.batch_size
        logger.info("Inserting %d rows into %s in batches of %d", len(rows), table, self.batch_size)

        for index, batch in iter_batches(rows, self.batch_size):
            logger.debug("Inserting %s batch %d/%d (%d rows)", table, index + 1, total_batches, len(batch))
            try:
                insert(batch)
            except SQLAlchemyError as e:
                logger.error("Error inserting %s batch %d: %s", table, index + 1, e)
                raise PersistenceFailure(table, index, len(batch), str(e)) from e


def _keyed(features: list[FeatureRecord]) -> Iterator[tuple[str, FeatureRecord]]:
    """Records with a usable key, first occurrence per key only."""
    seen: set[str] = set()
    for record in features:
        if not isinstance(record, dict):
            continue
        key = extract_key(record)
        if not key or key in seen:
            continue
        seen.add(key)
        yield key, record


def run_change_detection(
    session: Session,
    fetch_features: FeedFetcher,
    clock: Callable[[], datetime] = utcnow,
) -> RunResult:
    """Run one pass against the SQL store bound to `session`."""
    run = ChangeDetectionRun(
        snapshots=SnapshotRepository(session),
        change_log=ChangeLogRepository(session),
        fetch_features=fetch_features,
        clock=clock,
    )
    return run.execute()
