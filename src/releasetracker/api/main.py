from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from releasetracker.api.routes_changes import router as changes_router
from releasetracker.api.routes_notes import router as notes_router
from releasetracker.api.routes_refresh import router as refresh_router
from releasetracker.api.routes_watchlist import router as watchlist_router
from releasetracker.config.log import configure_logging
from releasetracker.config.settings import settings
from releasetracker.db.engine import build_engine, ping_db

configure_logging(settings.log_level)

app = FastAPI(title="Release Tracker")

cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["content-type"],
)

# API routes under /api
app.include_router(refresh_router, prefix="/api")
app.include_router(changes_router, prefix="/api")
app.include_router(watchlist_router, prefix="/api")
app.include_router(notes_router, prefix="/api")


@app.get("/api/health")
def health() -> dict:
    engine = build_engine()
    db = ping_db(engine)
    return {
        "status": "ok" if db.ok else "degraded",
        "db": {"ok": db.ok, "detail": db.detail},
    }


@app.get("/health")
def health_root() -> dict:
    return health()
