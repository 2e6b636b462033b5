"""Maps a changed field name to a change category."""

from __future__ import annotations

from releasetracker.models.domain import ChangeType

DATE_FIELDS = frozenset({"GA date", "Public preview date", "Early access date"})
WAVE_FIELDS = frozenset({"GA Release Wave", "Public Preview Release Wave"})
DESCRIPTION_FIELDS = frozenset({"Business value", "Feature details"})


def classify(field_name: str) -> ChangeType:
    if field_name in DATE_FIELDS:
        return ChangeType.DATE_CHANGE
    if field_name in WAVE_FIELDS:
        return ChangeType.WAVE_CHANGE
    if field_name in DESCRIPTION_FIELDS:
        return ChangeType.DESCRIPTION_CHANGE
    # catch-all: "Enabled for", "Investment area", ...
    return ChangeType.STATUS_CHANGE
