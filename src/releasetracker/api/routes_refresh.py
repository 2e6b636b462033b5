"""Change detection + raw feed API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from releasetracker.api.deps import get_db, get_feed, get_run_lock
from releasetracker.api.schemas import FeedResponse, RefreshResponse
from releasetracker.services.change_detection import FeedFetcher, run_change_detection
from releasetracker.services.exceptions import FeedUnavailable, PersistenceFailure, StoreUnavailable
from releasetracker.services.run_lock import RunAlreadyActive, RunLock

logger = logging.getLogger(__name__)

router = APIRouter(tags=["refresh"])


@router.api_route(
    "/refresh",
    methods=["GET", "POST"],
    response_model=RefreshResponse,
    response_model_exclude_none=True,
)
def refresh(
    session: Session = Depends(get_db),
    fetch_features: FeedFetcher = Depends(get_feed),
    run_lock: RunLock = Depends(get_run_lock),
):
    try:
        with run_lock.hold():
            result = run_change_detection(session, fetch_features)
    except RunAlreadyActive as e:
        raise HTTPException(status_code=409, detail={"error": "Refresh already running", "detail": str(e)})
    except FeedUnavailable as e:
        logger.error("Refresh failed, feed unavailable: %s", e)
        raise HTTPException(status_code=502, detail={"error": "Refresh failed", "detail": str(e)})
    except StoreUnavailable as e:
        logger.error("Refresh failed, store unavailable: %s", e)
        raise HTTPException(status_code=503, detail={"error": "Refresh failed", "detail": str(e)})
    except PersistenceFailure as e:
        logger.error("Refresh failed while persisting: %s", e)
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Refresh failed",
                "detail": e.detail,
                "table": e.table,
                "batch_index": e.batch_index,
                "batch_size": e.batch_size,
            },
        )

    return RefreshResponse(
        total=result.total,
        new_count=result.new_count,
        changed_count=result.changed_count,
        baseline=result.baseline,
        message=result.message,
    )


@router.get("/releaseplans", response_model=FeedResponse)
def release_plans(fetch_features: FeedFetcher = Depends(get_feed)):
    try:
        payload = fetch_features()
    except FeedUnavailable as e:
        raise HTTPException(
            status_code=502,
            detail={"error": "Failed to fetch Microsoft release plans", "detail": str(e)},
        )
    return FeedResponse(
        fetched_at=payload.fetched_at,
        source_url=payload.source_url,
        results=payload.results,
    )
