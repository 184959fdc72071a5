"""
Field catalog data model.

Raw metadata values are converted to a closed set of value types at the
boundary (`to_raw_value`) so classification is a dispatch over known shapes.
"""

from __future__ import annotations

import numbers
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union


class ValueKind(str, Enum):
    """Closed classification of a metadata value's shape."""

    TEXT = "text"
    LONG_TEXT = "long_text"
    NUMBER = "number"
    TEXT_LIST = "text_list"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, value: Any) -> Optional["ValueKind"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return None


# Raw value sum type ----------------------------------------------------------

@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class NumberValue:
    value: numbers.Real


@dataclass(frozen=True)
class ArrayValue:
    items: tuple[Any, ...]


@dataclass(frozen=True)
class ObjectValue:
    value: Any


@dataclass(frozen=True)
class NullValue:
    pass


@dataclass(frozen=True)
class BoolValue:
    value: bool


RawValue = Union[StringValue, NumberValue, ArrayValue, ObjectValue, NullValue, BoolValue]


def to_raw_value(value: Any) -> RawValue:
    """Wrap an arbitrary metadata value in its raw value type."""
    if value is None:
        return NullValue()
    # bool is a subclass of int; check it first so flags never count as numbers.
    if isinstance(value, bool):
        return BoolValue(value)
    if isinstance(value, str):
        return StringValue(value)
    if isinstance(value, numbers.Real):
        return NumberValue(value)
    if isinstance(value, (list, tuple)):
        return ArrayValue(tuple(value))
    return ObjectValue(value)


# Catalog records -------------------------------------------------------------

@dataclass(frozen=True)
class CatalogEntry:
    """A named, classified metadata field with optional conflict history."""

    name: str
    kind: ValueKind
    conflict_history: Optional[tuple[ValueKind, ...]] = None
    id: Optional[int] = None

    def with_conflict(self, observed: ValueKind) -> "CatalogEntry":
        """
        Return this entry degraded by an observation of `observed`.

        The kind is pinned to UNSUPPORTED; the history is seeded with the
        stored kind when absent and gains `observed` when not yet recorded.
        """
        history = list(self.conflict_history or (self.kind,))
        if observed not in history:
            history.append(observed)
        return replace(self, kind=ValueKind.UNSUPPORTED, conflict_history=tuple(history))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "conflict_history": [k.value for k in self.conflict_history] if self.conflict_history else None,
        }


@dataclass(frozen=True)
class MediaMetadata:
    """Per-file metadata item as produced by ingestion. `metadata` is read-only."""

    id: Any
    metadata: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class CatalogPage:
    fields: list[CatalogEntry]
    page: int
    per_page: int
    total_count: int
    total_pages: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "fields": [e.to_dict() for e in self.fields],
            "page": self.page,
            "per_page": self.per_page,
            "total_count": self.total_count,
            "total_pages": self.total_pages,
        }


# Commands and outcomes -------------------------------------------------------

@dataclass(frozen=True)
class ProcessCommand:
    """Freshly ingested batch of metadata items to merge into the catalog."""

    items: Optional[list[Any]] = None


@dataclass(frozen=True)
class SyncCommand:
    batch_size: Optional[int] = None
    track_conflicts: Optional[bool] = None


@dataclass(frozen=True)
class ProcessOutcome:
    created: int = 0
    updated: int = 0

    @property
    def processed_count(self) -> int:
        return self.created + self.updated

    def to_dict(self) -> dict[str, int]:
        return {"created": self.created, "updated": self.updated, "processed_count": self.processed_count}


@dataclass
class SyncOutcome:
    media_processed: int = 0
    media_without_metadata: int = 0
    keys_discovered: int = 0
    keys_saved: int = 0
    batches_processed: int = 0
    processing_time_ms: float = 0.0
    catalog_cleared: bool = False
    conflicts_detected: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "media_processed": self.media_processed,
            "media_without_metadata": self.media_without_metadata,
            "keys_discovered": self.keys_discovered,
            "keys_saved": self.keys_saved,
            "batches_processed": self.batches_processed,
            "processing_time_ms": round(float(self.processing_time_ms), 3),
            "catalog_cleared": self.catalog_cleared,
            "conflicts_detected": self.conflicts_detected,
        }


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))
