"""Field-level comparison of a fetched record against its latest snapshot."""

from __future__ import annotations

from typing import Optional

from releasetracker.models.domain import Comparison, ComparisonStatus, FeatureRecord, FieldDiff
from releasetracker.services.feature_keys import field_text

TRACKED_FIELDS: tuple[str, ...] = (
    "GA date",
    "Public preview date",
    "Early access date",
    "GA Release Wave",
    "Public Preview Release Wave",
    "Enabled for",
    "Business value",
    "Feature details",
    "Investment area",
)

MAX_VALUE_CHARS = 500


def compare(
    current: FeatureRecord,
    prior_latest: Optional[FeatureRecord],
    max_chars: int = MAX_VALUE_CHARS,
) -> Comparison:
    """
    Compare the tracked fields of `current` with `prior_latest`.

    - No prior -> NEW (whether the store is empty overall is the caller's call).
    - Values are compared as stripped strings; absent and "" are equal.
    - Diff values come back already cut to `max_chars`.
    """
    if prior_latest is None:
        return Comparison(status=ComparisonStatus.NEW)

    diffs: list[FieldDiff] = []
    for field_name in TRACKED_FIELDS:
        old = field_text(prior_latest, field_name)
        new = field_text(current, field_name)
        if old != new:
            diffs.append(
                FieldDiff(
                    field=field_name,
                    old_value=old[:max_chars],
                    new_value=new[:max_chars],
                )
            )

    if diffs:
        return Comparison(status=ComparisonStatus.CHANGED, diffs=tuple(diffs))
    return Comparison(status=ComparisonStatus.UNCHANGED)
