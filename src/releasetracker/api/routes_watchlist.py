"""Watchlist API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from releasetracker.api.deps import get_db
from releasetracker.api.schemas import (
    AnalysisStatusUpdate,
    FlaggedForUpdate,
    ImpactUpdate,
    OkResponse,
    WatchlistAddRequest,
    WatchlistDeleteRequest,
    WatchlistItemOut,
)
from releasetracker.repos.watchlist_repo import (
    ANALYSIS_STATUSES,
    FLAGGED_FOR,
    IMPACTS,
    WatchlistRepository,
)

router = APIRouter(prefix="/watchlist", tags=["watchlist"])


@router.get("", response_model=list[WatchlistItemOut])
def list_watchlist(session: Session = Depends(get_db)):
    return [
        WatchlistItemOut(
            release_plan_id=w.release_plan_id,
            feature_name=w.feature_name,
            product_name=w.product_name,
            impact=w.impact,
            analysis_status=w.analysis_status,
            flagged_for=w.flagged_for,
            added_at=w.added_at,
        )
        for w in WatchlistRepository(session).list_items()
    ]


@router.post("", response_model=OkResponse)
def add_to_watchlist(payload: WatchlistAddRequest, session: Session = Depends(get_db)):
    if not payload.release_plan_id or not payload.feature_name or not payload.product_name:
        raise HTTPException(status_code=400, detail="Missing required fields")
    WatchlistRepository(session).upsert(
        release_plan_id=payload.release_plan_id,
        feature_name=payload.feature_name,
        product_name=payload.product_name,
    )
    return OkResponse()


@router.delete("", response_model=OkResponse)
def remove_from_watchlist(payload: WatchlistDeleteRequest, session: Session = Depends(get_db)):
    if not payload.release_plan_id:
        raise HTTPException(status_code=400, detail="Missing release_plan_id")
    WatchlistRepository(session).delete(payload.release_plan_id)
    return OkResponse()


@router.post("/impact", response_model=OkResponse)
def update_impact(payload: ImpactUpdate, session: Session = Depends(get_db)):
    if not payload.release_plan_id or payload.impact not in IMPACTS:
        raise HTTPException(status_code=400, detail="Invalid payload")
    WatchlistRepository(session).set_impact(payload.release_plan_id, payload.impact)
    return OkResponse()


@router.post("/flagged-for", response_model=OkResponse)
def update_flagged_for(payload: FlaggedForUpdate, session: Session = Depends(get_db)):
    if not payload.release_plan_id or payload.flagged_for not in FLAGGED_FOR:
        raise HTTPException(status_code=400, detail="Invalid payload")
    WatchlistRepository(session).set_flagged_for(payload.release_plan_id, payload.flagged_for)
    return OkResponse()


@router.post("/analysis-status", response_model=OkResponse)
def update_analysis_status(payload: AnalysisStatusUpdate, session: Session = Depends(get_db)):
    if not payload.release_plan_id or payload.analysis_status not in ANALYSIS_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid payload")
    WatchlistRepository(session).set_analysis_status(payload.release_plan_id, payload.analysis_status)
    return OkResponse()
