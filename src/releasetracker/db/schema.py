# src/releasetracker/db/schema.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _uuid() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    pass


class FeatureSnapshot(Base):
    """
    Append-only copy of one release plan record as fetched.
    Latest per release_plan_id = max(fetched_at).
    """
    __tablename__ = "feature_snapshots"

    snapshot_id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    release_plan_id: Mapped[str] = mapped_column(String, nullable=False, index=True)

    snapshot_json: Mapped[str] = mapped_column(Text, nullable=False)

    fetched_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )


class ChangeLog(Base):
    """
    One detected difference (or new_feature event). Never updated.
    """
    __tablename__ = "change_log"

    change_id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    # sha256 over (release_plan_id, field, prior fetched_at, new value)
    change_key: Mapped[str] = mapped_column(String, nullable=False, unique=True)

    release_plan_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    feature_name: Mapped[str] = mapped_column(Text, nullable=False)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)

    change_type: Mapped[str] = mapped_column(String, nullable=False)
    field_changed: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    old_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    new_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    detected_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )


class WatchlistItem(Base):
    """
    Team-curated watchlist, one row per release plan.
    """
    __tablename__ = "watchlist"

    release_plan_id: Mapped[str] = mapped_column(String, primary_key=True)
    feature_name: Mapped[str] = mapped_column(Text, nullable=False)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)

    impact: Mapped[str] = mapped_column(String, nullable=False)
    analysis_status: Mapped[str] = mapped_column(String, nullable=False)
    flagged_for: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    added_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )


class Note(Base):
    """
    Free-text team notes attached to a release plan.
    """
    __tablename__ = "notes"

    note_id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)
    release_plan_id: Mapped[str] = mapped_column(String, nullable=False, index=True)

    author_name: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )
