"""Notes Repository."""

from __future__ import annotations

from datetime import datetime
from typing import List, Sequence

from sqlalchemy.orm import Session

from releasetracker.db.schema import Note

MAX_AUTHOR_CHARS = 80
MAX_CONTENT_CHARS = 4000


class NotesRepository:
    """Repository for notes table operations."""

    def __init__(self, session: Session):
        self.session = session

    def list_for(self, release_plan_id: str) -> List[Note]:
        return self.list_for_many([release_plan_id])

    def list_for_many(self, release_plan_ids: Sequence[str]) -> List[Note]:
        if not release_plan_ids:
            return []
        return (
            self.session.query(Note)
            .filter(Note.release_plan_id.in_(list(release_plan_ids)))
            .order_by(Note.created_at.desc())
            .all()
        )

    def add(self, release_plan_id: str, author_name: str, content: str) -> Note:
        note = Note(
            release_plan_id=release_plan_id,
            author_name=author_name[:MAX_AUTHOR_CHARS],
            content=content[:MAX_CONTENT_CHARS],
            created_at=datetime.utcnow(),
        )
        self.session.add(note)
        self.session.commit()
        return note
