"""API dependencies."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy.orm import Session, sessionmaker

from releasetracker.config.settings import settings
from releasetracker.db.engine import build_engine
from releasetracker.db.init_db import ensure_db
from releasetracker.models.domain import FeedPayload
from releasetracker.services.change_detection import FeedFetcher
from releasetracker.services.release_feed import FeedCache, ReleasePlanFeed
from releasetracker.services.run_lock import RunLock

# process-wide, owned by the HTTP layer
_feed_cache: FeedCache[FeedPayload] = FeedCache(ttl_s=settings.cache_ttl_seconds)
_run_lock = RunLock()


def get_db() -> Generator[Session, None, None]:
    engine = build_engine()
    ensure_db(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_feed() -> FeedFetcher:
    return ReleasePlanFeed(cache=_feed_cache)


def get_run_lock() -> RunLock:
    return _run_lock
