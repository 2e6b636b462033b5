"""Global test fixtures."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from releasetracker.db.schema import Base  # noqa: E402


class TickClock:
    """Deterministic clock: every call is one minute after the previous one."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 12, 0, 0)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(minutes=1)
        return self.now


def make_record(rpid: str, **fields) -> dict:
    record = {
        "Release Plan ID": rpid,
        "Feature name": f"Feature {rpid}",
        "Product name": "Dynamics 365 Sales",
        "GA date": "2025-01-01",
        "Public preview date": "",
        "GA Release Wave": "2025 release wave 1",
        "Enabled for": "Admins, makers, or analysts, automatically",
        "Investment area": "Copilot",
    }
    record.update(fields)
    return record


@pytest.fixture
def clock() -> TickClock:
    return TickClock()


@pytest.fixture
def db_sessionmaker(tmp_path):
    engine = create_engine(f"duckdb:///{tmp_path / 'releasetracker_test.duckdb'}")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    yield Session
    engine.dispose()


@pytest.fixture
def session(db_sessionmaker):
    s = db_sessionmaker()
    yield s
    s.close()


@pytest.fixture
def record():
    """Factory for release plan records: record("A", **{"GA date": "..."})."""
    return make_record
