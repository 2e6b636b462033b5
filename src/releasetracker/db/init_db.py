from __future__ import annotations

from sqlalchemy.engine import Engine

from releasetracker.db.schema import Base


def _commit_raw(conn) -> None:
    # DuckDB needs the DBAPI-level commit for DDL issued on a plain connection.
    raw = conn.connection
    if hasattr(raw, "commit"):
        raw.commit()


def init_db(engine: Engine) -> None:
    """
    Drop and recreate every table.

    Snapshots and change log are append-only history, so this is only for
    local resets and tests. Use `ensure_db` everywhere else.
    """
    conn = engine.connect()
    try:
        Base.metadata.drop_all(bind=conn)
        Base.metadata.create_all(bind=conn)
        _commit_raw(conn)
    finally:
        conn.close()


def ensure_db(engine: Engine) -> None:
    """Create missing tables; existing data is left alone."""
    conn = engine.connect()
    try:
        Base.metadata.create_all(bind=conn)
        _commit_raw(conn)
    finally:
        conn.close()
