"""Notes API routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from releasetracker.api.deps import get_db
from releasetracker.api.schemas import NoteCreateRequest, NoteOut, OkResponse
from releasetracker.repos.notes_repo import NotesRepository

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("", response_model=list[NoteOut])
def list_notes(
    release_plan_id: Optional[str] = Query(None),
    ids: Optional[str] = Query(None, description="comma-separated release plan ids"),
    session: Session = Depends(get_db),
):
    repo = NotesRepository(session)
    if ids is not None:
        id_list = [s.strip() for s in ids.split(",") if s.strip()]
        if not id_list:
            raise HTTPException(status_code=400, detail="Empty ids list")
        notes = repo.list_for_many(id_list)
    elif release_plan_id:
        notes = repo.list_for(release_plan_id)
    else:
        raise HTTPException(status_code=400, detail="Missing release_plan_id")

    return [
        NoteOut(
            id=n.note_id,
            release_plan_id=n.release_plan_id,
            author_name=n.author_name,
            content=n.content,
            created_at=n.created_at,
        )
        for n in notes
    ]


@router.post("", response_model=OkResponse)
def create_note(payload: NoteCreateRequest, session: Session = Depends(get_db)):
    if not payload.release_plan_id or not payload.author_name or not payload.content:
        raise HTTPException(status_code=400, detail="Missing required fields")
    NotesRepository(session).add(
        release_plan_id=payload.release_plan_id,
        author_name=payload.author_name,
        content=payload.content,
    )
    return OkResponse()
