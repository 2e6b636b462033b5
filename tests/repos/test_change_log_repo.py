"""Unit tests for ChangeLogRepository."""

from datetime import datetime, timedelta

from sqlalchemy import func, select

from releasetracker.db.schema import ChangeLog
from releasetracker.models.domain import ChangeLogRow, ChangeType
from releasetracker.repos.change_log_repo import ChangeLogRepository


def _entry(key, rpid="A", detected_at=None, field="GA date"):
    return ChangeLogRow(
        change_key=key,
        release_plan_id=rpid,
        feature_name="Feature",
        product_name="Product",
        change_type=ChangeType.DATE_CHANGE,
        field_changed=field,
        old_value="2025-01-01",
        new_value="2025-02-01",
        detected_at=detected_at or datetime.utcnow(),
    )


def test_insert_entries_skips_existing_keys(session):
    repo = ChangeLogRepository(session)

    assert repo.insert_entries([_entry("k1"), _entry("k2")]) == 2
    assert repo.insert_entries([_entry("k2"), _entry("k3")]) == 1
    assert session.execute(select(func.count()).select_from(ChangeLog)).scalar_one() == 3


def test_insert_empty_batch(session):
    assert ChangeLogRepository(session).insert_entries([]) == 0


def test_list_recent_filters_by_window_newest_first(session):
    now = datetime(2025, 6, 1, 12, 0)
    repo = ChangeLogRepository(session)
    repo.insert_entries(
        [
            _entry("old", detected_at=now - timedelta(days=20)),
            _entry("mid", detected_at=now - timedelta(days=5)),
            _entry("new", detected_at=now - timedelta(hours=1)),
        ]
    )

    rows = repo.list_recent(days=14, now=now)

    assert [r.change_key for r in rows] == ["new", "mid"]
    assert rows[0].change_type == "date_change"


def test_list_recent_respects_limit(session):
    now = datetime(2025, 6, 1)
    repo = ChangeLogRepository(session)
    repo.insert_entries([_entry(f"k{i}", detected_at=now - timedelta(minutes=i)) for i in range(5)])
    assert len(repo.list_recent(days=1, limit=3, now=now)) == 3
