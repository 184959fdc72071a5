"""Catalog entry construction."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Optional

from .models import CatalogEntry, ValueKind


def create(name: str, kind: ValueKind, conflict_history: Optional[Iterable[ValueKind]] = None) -> CatalogEntry:
    history = tuple(conflict_history) if conflict_history else None
    return CatalogEntry(name=name, kind=kind, conflict_history=history)


def create_from_map(kinds: Mapping[str, ValueKind]) -> list[CatalogEntry]:
    """Build one new entry per name, preserving the mapping's iteration order."""
    return [create(name, kind) for name, kind in kinds.items()]
