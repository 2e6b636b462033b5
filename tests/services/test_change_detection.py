"""ChangeDetectionRun against in-memory stores."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from releasetracker.models.domain import ChangeType, FeedPayload, PriorSnapshot
from releasetracker.services.change_detection import (
    BASELINE_MESSAGE,
    ChangeDetectionRun,
    change_key,
    iter_batches,
)
from releasetracker.services.exceptions import FeedUnavailable, PersistenceFailure, StoreUnavailable


class FakeSnapshotStore:
    def __init__(self, fail_on_call=None, count_error=None):
        self.rows = []
        self.insert_calls = 0
        self.fail_on_call = fail_on_call
        self.count_error = count_error

    def count_all(self):
        if self.count_error:
            raise self.count_error
        return len(self.rows)

    def insert_snapshots(self, rows):
        self.insert_calls += 1
        if self.fail_on_call == self.insert_calls:
            raise SQLAlchemyError("disk full")
        self.rows.extend(rows)

    def latest_by_keys(self, keys):
        out = {}
        for r in self.rows:
            if r.release_plan_id in keys:
                cur = out.get(r.release_plan_id)
                if cur is None or r.fetched_at > cur.fetched_at:
                    out[r.release_plan_id] = PriorSnapshot(r.release_plan_id, r.snapshot_data, r.fetched_at)
        return out


class FakeChangeLog:
    def __init__(self, fail_on_call=None):
        self.rows = []
        self.insert_calls = 0
        self.fail_on_call = fail_on_call

    def insert_entries(self, rows):
        self.insert_calls += 1
        if self.fail_on_call == self.insert_calls:
            raise SQLAlchemyError("constraint violation")
        keys = {r.change_key for r in self.rows}
        fresh = [r for r in rows if r.change_key not in keys]
        self.rows.extend(fresh)
        return len(fresh)


def _feed(records):
    def _fetch():
        return FeedPayload(fetched_at="2025-01-01T00:00:00+00:00", source_url="https://example.test", results=records)
    return _fetch


def _run(snapshots, change_log, records, clock, **kwargs):
    return ChangeDetectionRun(snapshots, change_log, _feed(records), clock=clock, **kwargs).execute()


def test_baseline_run_seeds_snapshots_only(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()

    result = _run(snaps, log, [record("A"), record("B"), record("C")], clock)

    assert result.total == 3
    assert result.new_count == 0
    assert result.changed_count == 0
    assert result.baseline is True
    assert result.message == BASELINE_MESSAGE
    assert len(snaps.rows) == 3
    assert log.rows == []


def test_second_run_is_not_baseline_and_idempotent(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    records = [record("A"), record("B")]

    _run(snaps, log, records, clock)
    second = _run(snaps, log, records, clock)
    third = _run(snaps, log, records, clock)

    for result in (second, third):
        assert result.baseline is False
        assert result.new_count == 0
        assert result.changed_count == 0
    assert len(snaps.rows) == 2
    assert log.rows == []
    assert log.insert_calls == 0


def test_new_feature_after_baseline(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    _run(snaps, log, [record("A")], clock)

    result = _run(snaps, log, [record("A"), record("B")], clock)

    assert (result.total, result.new_count, result.changed_count, result.baseline) == (2, 1, 0, False)
    assert [r.release_plan_id for r in snaps.rows] == ["A", "B"]
    (entry,) = log.rows
    assert entry.release_plan_id == "B"
    assert entry.change_type is ChangeType.NEW_FEATURE
    assert entry.field_changed is None
    assert entry.old_value is None
    assert entry.new_value is None
    assert entry.feature_name == "Feature B"
    assert entry.product_name == "Dynamics 365 Sales"


def test_field_change_logs_one_entry_and_one_snapshot(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    _run(snaps, log, [record("A", **{"GA date": "2025-01-01"})], clock)

    result = _run(snaps, log, [record("A", **{"GA date": "2025-02-01"})], clock)

    assert result.changed_count == 1
    assert result.new_count == 0
    (entry,) = log.rows
    assert entry.change_type is ChangeType.DATE_CHANGE
    assert entry.field_changed == "GA date"
    assert entry.old_value == "2025-01-01"
    assert entry.new_value == "2025-02-01"
    assert len(snaps.rows) == 2
    assert snaps.rows[-1].snapshot_data["GA date"] == "2025-02-01"


def test_multiple_field_changes_share_one_snapshot(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    _run(snaps, log, [record("A")], clock)

    changed = record(
        "A",
        **{
            "GA date": "2025-03-01",
            "GA Release Wave": "2025 release wave 2",
            "Business value": "Now with more value",
            "Enabled for": "Users by admins",
        },
    )
    result = _run(snaps, log, [changed], clock)

    assert result.changed_count == 1
    assert len(snaps.rows) == 2
    assert sorted(e.change_type.value for e in log.rows) == [
        "date_change",
        "description_change",
        "status_change",
        "wave_change",
    ]


def test_diff_is_against_latest_snapshot(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    _run(snaps, log, [record("A", **{"GA date": "2025-01-01"})], clock)
    _run(snaps, log, [record("A", **{"GA date": "2025-02-01"})], clock)

    _run(snaps, log, [record("A", **{"GA date": "2025-03-01"})], clock)

    last = log.rows[-1]
    assert (last.old_value, last.new_value) == ("2025-02-01", "2025-03-01")


def test_change_back_to_earlier_value_is_logged(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    _run(snaps, log, [record("A", **{"GA date": "2025-01-01"})], clock)
    _run(snaps, log, [record("A", **{"GA date": "2025-02-01"})], clock)
    result = _run(snaps, log, [record("A", **{"GA date": "2025-01-01"})], clock)

    assert result.changed_count == 1
    assert len(log.rows) == 2


def test_blank_keys_are_skipped(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    _run(snaps, log, [record("A")], clock)

    result = _run(snaps, log, [record("A"), record("  ")], clock)

    assert result.total == 2
    assert result.new_count == 0
    assert result.changed_count == 0
    assert len(snaps.rows) == 1
    assert log.rows == []


def test_blank_keys_skipped_in_baseline(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    result = _run(snaps, log, [record("A"), record(""), {"Feature name": "no id"}], clock)
    assert result.total == 3
    assert len(snaps.rows) == 1


def test_duplicate_keys_in_one_feed_counted_once(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    _run(snaps, log, [record("A")], clock)

    result = _run(snaps, log, [record("B"), record("B")], clock)

    assert result.new_count == 1
    assert len([r for r in snaps.rows if r.release_plan_id == "B"]) == 1


def test_batches_of_fixed_size(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    records = [record(f"K{i}") for i in range(450)]

    _run(snaps, log, records, clock, batch_size=200)

    assert snaps.insert_calls == 3
    assert len(snaps.rows) == 450


def test_baseline_batch_failure_raises_with_batch_info(record, clock):
    snaps, log = FakeSnapshotStore(fail_on_call=2), FakeChangeLog()
    records = [record(f"K{i}") for i in range(450)]

    with pytest.raises(PersistenceFailure) as exc:
        _run(snaps, log, records, clock, batch_size=200)

    assert exc.value.table == "feature_snapshots"
    assert exc.value.batch_index == 1
    assert exc.value.batch_size == 200
    # batch 0 stays committed, nothing after the failed batch is attempted
    assert len(snaps.rows) == 200
    assert snaps.insert_calls == 2


def test_change_log_written_before_snapshots(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    _run(snaps, log, [record("A")], clock)
    log.fail_on_call = 1

    with pytest.raises(PersistenceFailure) as exc:
        _run(snaps, log, [record("A"), record("B")], clock)

    assert exc.value.table == "change_log"
    # no snapshot for B yet, so the next run still sees it as new
    assert len(snaps.rows) == 1
    log.fail_on_call = None
    result = _run(snaps, log, [record("A"), record("B")], clock)
    assert result.new_count == 1
    assert len(log.rows) == 1


def test_retry_after_snapshot_failure_does_not_duplicate_log(record, clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    _run(snaps, log, [record("A", **{"GA date": "2025-01-01"})], clock)
    snaps.fail_on_call = snaps.insert_calls + 1

    changed = [record("A", **{"GA date": "2025-02-01"})]
    with pytest.raises(PersistenceFailure):
        _run(snaps, log, changed, clock)
    assert len(log.rows) == 1

    snaps.fail_on_call = None
    result = _run(snaps, log, changed, clock)

    assert result.changed_count == 1
    assert len(log.rows) == 1
    assert len(snaps.rows) == 2


def test_feed_failure_aborts_without_writes(clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()

    def _broken():
        raise FeedUnavailable("Microsoft API error 503")

    with pytest.raises(FeedUnavailable):
        ChangeDetectionRun(snaps, log, _broken, clock=clock).execute()
    assert snaps.insert_calls == 0
    assert log.insert_calls == 0


def test_malformed_feed_payload_is_feed_unavailable(clock):
    snaps, log = FakeSnapshotStore(), FakeChangeLog()
    with pytest.raises(FeedUnavailable):
        ChangeDetectionRun(snaps, log, lambda: {"results": []}, clock=clock).execute()


def test_store_unavailable_aborts_before_fetch(clock):
    snaps = FakeSnapshotStore(count_error=SQLAlchemyError("no connection"))
    calls = []

    def _fetch():
        calls.append(1)
        return FeedPayload("2025-01-01T00:00:00+00:00", "https://example.test", [])

    with pytest.raises(StoreUnavailable):
        ChangeDetectionRun(snaps, FakeChangeLog(), _fetch, clock=clock).execute()
    assert calls == []


def test_change_key_is_deterministic():
    a = change_key("A", "GA date", None, "2025-02-01")
    assert a == change_key("A", "GA date", None, "2025-02-01")
    assert a != change_key("A", "GA date", None, "2025-03-01")
    assert change_key("A", None, None, None) != change_key("B", None, None, None)


def test_iter_batches():
    batches = list(iter_batches(list(range(5)), 2))
    assert batches == [(0, [0, 1]), (1, [2, 3]), (2, [4])]
