# src/releasetracker/db/engine.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from releasetracker.config.settings import settings


@dataclass(frozen=True)
class StoreHealth:
    """Snapshot store status as shown by the health endpoints."""

    ok: bool
    detail: str


def _ensure_duckdb_dir(url: str) -> None:
    # duckdb:///data/x.duckdb -> data/x.duckdb
    path = url.split(":///", 1)[-1]
    if path and path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)


def build_engine(db_url: Optional[str] = None) -> Engine:
    """
    Engine for the snapshot store.

    Resolution order: explicit `db_url`, `DATABASE_URL`, then settings.db_url.
    DuckDB file URLs get their parent directory created.
    """
    url = db_url or os.getenv("DATABASE_URL") or settings.db_url
    if url.startswith("postgresql"):
        return create_engine(url, future=True, pool_pre_ping=True)
    if url.startswith("duckdb"):
        _ensure_duckdb_dir(url)
    return create_engine(url, future=True)


def ping_db(engine: Engine) -> StoreHealth:
    """
    Round-trip one trivial query against the snapshot store.

    Connection and driver errors come back as `ok=False` with the dialect and
    error in `detail`; /api/health reports them as `degraded` instead of 500.
    """
    dialect = engine.dialect.name
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("select 1")
    except Exception as e:
        return StoreHealth(ok=False, detail=f"{dialect} unreachable: {type(e).__name__}: {e}")
    return StoreHealth(ok=True, detail=f"{dialect} reachable")
