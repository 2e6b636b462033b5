"""Identity and display attributes of a raw release plan record."""

from __future__ import annotations

from typing import Any, Mapping

KEY_FIELD = "Release Plan ID"
NAME_FIELD = "Feature name"
PRODUCT_FIELD = "Product name"


def field_text(record: Mapping[str, Any] | None, field_name: str) -> str:
    """Coerce a record field to a stripped string; missing/None -> ''."""
    if not record:
        return ""
    value = record.get(field_name)
    if value is None:
        return ""
    return str(value).strip()


def extract_key(record: Mapping[str, Any]) -> str:
    """
    Stable identity of a record. An empty string means the record
    cannot be tracked and must be skipped by the caller.
    """
    return field_text(record, KEY_FIELD)


def display_name(record: Mapping[str, Any]) -> str:
    return field_text(record, NAME_FIELD)


def product_name(record: Mapping[str, Any]) -> str:
    return field_text(record, PRODUCT_FIELD)
