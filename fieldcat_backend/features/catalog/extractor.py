"""
Metadata key extraction.

Turns per-file metadata maps into `{name: kind}` maps of the names they carry.
Within one call the first occurrence of a name wins, in input iteration order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional

from .classifier import classify
from .models import MediaMetadata, ValueKind


def metadata_of(item: Any) -> Optional[Any]:
    if isinstance(item, MediaMetadata):
        return item.metadata
    if isinstance(item, Mapping):
        return item.get("metadata")
    return getattr(item, "metadata", None)


def has_valid_metadata(item: Any) -> bool:
    """True when the item carries a metadata mapping (an empty mapping counts)."""
    if item is None:
        return False
    return isinstance(metadata_of(item), Mapping)


def extract_from_one(metadata: Any) -> dict[str, ValueKind]:
    if not isinstance(metadata, Mapping):
        return {}
    return {str(name): classify(value) for name, value in metadata.items()}


def extract_from_many(items: Optional[Iterable[Any]]) -> dict[str, ValueKind]:
    found: dict[str, ValueKind] = {}
    for item in items or ():
        if not has_valid_metadata(item):
            continue
        for name, value in metadata_of(item).items():
            key = str(name)
            if key in found:
                continue
            found[key] = classify(value)
    return found
