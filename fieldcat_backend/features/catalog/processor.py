"""
Incremental catalog processing.

Merges the metadata names of one freshly ingested batch into the live
catalog. New names are inserted; a name observed with a kind different from
the stored one is degraded to UNSUPPORTED and its conflict history updated.

Never raises: every outcome, including unexpected errors, is a `Result`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ...shared import ErrorCode, Result, elapsed_ms, get_logger, log_structured, monotonic_ms
from . import factory
from .events import (
    EntriesSaved,
    EventBus,
    ProcessingCompleted,
    ProcessingFailed,
    ProcessingStarted,
    TypeConflictDetected,
)
from .extractor import extract_from_many, has_valid_metadata
from .metrics import CatalogMetrics, new_operation_id
from .models import CatalogEntry, ProcessCommand, ProcessOutcome
from .validation import validate_process_command

logger = get_logger(__name__)


class IncrementalProcessor:
    def __init__(self, repository, events: Optional[EventBus] = None, metrics: Optional[CatalogMetrics] = None):
        self.repository = repository
        self.events = events
        self.metrics = metrics or CatalogMetrics(enabled=False)

    def _publish(self, event: Any) -> None:
        if self.events is not None:
            self.events.publish(event)

    async def process(self, command: ProcessCommand) -> Result[ProcessOutcome]:
        operation_id = new_operation_id("process")
        started = monotonic_ms()
        items = getattr(command, "items", None)
        self.metrics.start_operation("incremental_process", operation_id)
        self._publish(ProcessingStarted(
            operation_id=operation_id,
            item_count=len(items) if isinstance(items, (list, tuple)) else 0,
        ))

        validation = validate_process_command(command)
        if not validation.is_valid:
            result = Result.Err(ErrorCode.INVALID_INPUT, "; ".join(validation.errors), errors=validation.errors)
        else:
            try:
                result = await self._merge(operation_id, list(items))
            except Exception as exc:
                logger.exception("Incremental processing %s failed unexpectedly", operation_id)
                result = Result.Err(ErrorCode.PROCESS_FAILED, f"Incremental processing failed: {exc}")

        if result.ok:
            outcome = result.data
            duration = elapsed_ms(started)
            self._publish(ProcessingCompleted(
                operation_id=operation_id,
                created=outcome.created,
                updated=outcome.updated,
                duration_ms=duration,
            ))
            log_structured(
                logger,
                logging.INFO,
                "Incremental processing finished",
                operation_id=operation_id,
                created=outcome.created,
                updated=outcome.updated,
                duration_ms=round(duration, 3),
            )
        else:
            self.metrics.increment(operation_id, items_errored=1)
            self._publish(ProcessingFailed(
                operation_id=operation_id,
                error=result.error or "unknown error",
                created=int(result.meta.get("created", 0)),
                updated=int(result.meta.get("updated", 0)),
            ))
            logger.warning("Incremental processing %s failed: %s", operation_id, result.error)

        self.metrics.complete_operation(operation_id)
        return result

    async def _merge(self, operation_id: str, items: list[Any]) -> Result[ProcessOutcome]:
        discovered = extract_from_many(items)
        with_metadata = sum(1 for item in items if has_valid_metadata(item))
        self.metrics.update_operation(
            operation_id,
            items_processed=with_metadata,
            items_skipped=len(items) - with_metadata,
        )
        if not discovered:
            return Result.Ok(ProcessOutcome())

        existing_res = await self.repository.find_existing_entries()
        self.metrics.increment(operation_id, database_operations=1)
        if not existing_res.ok:
            return Result.Err(
                existing_res.code or ErrorCode.DB_ERROR,
                f"Failed to load catalog: {existing_res.error}",
                **existing_res.meta,
            )
        existing: dict[str, CatalogEntry] = existing_res.data or {}

        inserts: list[CatalogEntry] = []
        updates: list[CatalogEntry] = []
        for name, kind in discovered.items():
            current = existing.get(name)
            if current is None:
                inserts.append(factory.create(name, kind))
                continue
            if current.kind == kind:
                continue
            merged = current.with_conflict(kind)
            if merged == current:
                # Already pinned with this kind recorded.
                continue
            updates.append(merged)
            self._publish(TypeConflictDetected(
                operation_id=operation_id,
                name=name,
                previous_kind=current.kind,
                observed_kind=kind,
            ))
            logger.info("Type conflict on %r: %s -> %s", name, current.kind.value, kind.value)

        if not inserts and not updates:
            return Result.Ok(ProcessOutcome())

        created = 0
        if inserts:
            saved = await self.repository.save(inserts)
            self.metrics.increment(operation_id, database_operations=1)
            if not saved.ok:
                return Result.Err(
                    saved.code or ErrorCode.DB_ERROR,
                    f"Failed to insert catalog entries: {saved.error}",
                    **saved.meta,
                )
            created = len(saved.data or [])
            self._publish(EntriesSaved(operation_id=operation_id, names=tuple(e.name for e in inserts)))

        updated = 0
        if updates:
            saved = await self.repository.save(updates)
            self.metrics.increment(operation_id, database_operations=1)
            if not saved.ok:
                # Inserts above stay committed.
                return Result.Err(
                    saved.code or ErrorCode.DB_ERROR,
                    f"Failed to update catalog entries: {saved.error}",
                    created=created,
                    **saved.meta,
                )
            updated = len(saved.data or [])
            self._publish(EntriesSaved(operation_id=operation_id, names=tuple(e.name for e in updates)))

        return Result.Ok(ProcessOutcome(created=created, updated=updated))
