"""
Full catalog synchronization.

Rebuilds the catalog from the whole media collection:
1) clear the catalog,
2) walk the collection in offset order, one batch at a time,
3) fold every batch's names into a running discovery map,
4) bulk insert the result.

Batches are strictly sequential, so peak memory is one batch of metadata.
By default a name keeps the first kind observed during the walk; with
`track_conflicts` the incremental conflict rule is applied while folding.

Any failure aborts the run with a single `CatalogSyncError`; partial state
is left as-is and the next run starts by clearing again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from ...config import SYNC_BATCH_SIZE, SYNC_TRACK_CONFLICTS
from ...shared import ErrorCode, elapsed_ms, get_logger, log_structured, log_success, monotonic_ms
from . import factory
from .errors import CatalogSyncError
from .events import (
    CatalogCleared,
    EntriesSaved,
    EventBus,
    SyncBatchProcessed,
    SyncCompleted,
    SyncFailed,
    SyncStarted,
    TypeConflictDetected,
)
from .extractor import extract_from_one, has_valid_metadata, metadata_of
from .metrics import CatalogMetrics, new_operation_id
from .models import CatalogEntry, SyncCommand, SyncOutcome
from .validation import validate_batch_window, validate_sync_command

logger = get_logger(__name__)


def _is_missing_table(error: Optional[str]) -> bool:
    return "no such table" in str(error or "").lower()


class FullSynchronizer:
    def __init__(
        self,
        repository,
        media_store,
        events: Optional[EventBus] = None,
        metrics: Optional[CatalogMetrics] = None,
        batch_size: int = SYNC_BATCH_SIZE,
        track_conflicts: bool = SYNC_TRACK_CONFLICTS,
    ):
        self.repository = repository
        self.media_store = media_store
        self.events = events
        self.metrics = metrics or CatalogMetrics(enabled=False)
        self.batch_size = int(batch_size)
        self.track_conflicts = bool(track_conflicts)
        self._sync_lock = asyncio.Lock()

    def _publish(self, event: Any) -> None:
        if self.events is not None:
            self.events.publish(event)

    async def synchronize(self, command: Optional[SyncCommand] = None) -> SyncOutcome:
        """
        Rebuild the catalog from scratch.

        Raises:
            CatalogSyncError: invalid command or any failed step.
        """
        validation = validate_sync_command(command)
        if not validation.is_valid:
            raise CatalogSyncError(ErrorCode.INVALID_INPUT, "; ".join(validation.errors))

        command = command or SyncCommand()
        batch_size = command.batch_size or self.batch_size
        track_conflicts = self.track_conflicts if command.track_conflicts is None else command.track_conflicts

        async with self._sync_lock:
            return await self._run(batch_size, track_conflicts)

    async def _run(self, batch_size: int, track_conflicts: bool) -> SyncOutcome:
        operation_id = new_operation_id("sync")
        started = monotonic_ms()
        outcome = SyncOutcome()
        self.metrics.start_operation("full_sync", operation_id)
        self._publish(SyncStarted(operation_id=operation_id, batch_size=batch_size))
        log_structured(
            logger,
            logging.INFO,
            "Full synchronization started",
            operation_id=operation_id,
            batch_size=batch_size,
            track_conflicts=track_conflicts,
        )

        try:
            await self._rebuild(operation_id, batch_size, track_conflicts, outcome)
        except CatalogSyncError as exc:
            self._fail(operation_id, outcome, exc)
            raise
        except Exception as exc:
            err = CatalogSyncError(ErrorCode.SYNC_FAILED, f"Full synchronization failed: {exc}")
            self._fail(operation_id, outcome, err)
            raise err from exc
        finally:
            outcome.processing_time_ms = elapsed_ms(started)
            self.metrics.complete_operation(operation_id)

        self._publish(SyncCompleted(operation_id=operation_id, outcome=outcome.to_dict()))
        log_success(
            logger,
            f"Catalog synchronized: {outcome.keys_saved} fields from {outcome.media_processed} media "
            f"in {outcome.batches_processed} batches ({outcome.processing_time_ms:.0f} ms)",
        )
        return outcome

    def _fail(self, operation_id: str, outcome: SyncOutcome, exc: CatalogSyncError) -> None:
        self.metrics.increment(operation_id, items_errored=1)
        self._publish(SyncFailed(
            operation_id=operation_id,
            error=exc.message,
            batches_processed=outcome.batches_processed,
            media_processed=outcome.media_processed,
        ))
        log_structured(
            logger,
            logging.ERROR,
            "Full synchronization failed",
            operation_id=operation_id,
            code=exc.code,
            error=exc.message,
            batches_processed=outcome.batches_processed,
        )

    async def _clear(self, operation_id: str) -> int:
        res = await self.repository.clear()
        self.metrics.increment(operation_id, database_operations=1)
        if res.ok:
            return int(res.data or 0)
        if _is_missing_table(res.error):
            return 0
        raise CatalogSyncError(res.code or ErrorCode.DB_ERROR, f"Failed to clear catalog: {res.error}")

    async def _rebuild(self, operation_id: str, batch_size: int, track_conflicts: bool, outcome: SyncOutcome) -> None:
        deleted = await self._clear(operation_id)
        outcome.catalog_cleared = True
        self._publish(CatalogCleared(operation_id=operation_id, deleted=deleted))

        count_res = await self.media_store.count_all()
        self.metrics.increment(operation_id, database_operations=1)
        if not count_res.ok:
            raise CatalogSyncError(count_res.code or ErrorCode.DB_ERROR, f"Failed to count media: {count_res.error}")
        total = int(count_res.data or 0)
        if total == 0:
            logger.info("Media collection is empty; catalog left empty")
            return

        discovered: dict[str, CatalogEntry] = {}
        offset = 0
        while offset < total:
            window = validate_batch_window(batch_size, offset, total)
            if not window.is_valid:
                raise CatalogSyncError(ErrorCode.INVALID_INPUT, f"Invalid batch window: {'; '.join(window.errors)}")

            batch_res = await self.media_store.find_metadata_batch(batch_size, offset)
            self.metrics.increment(operation_id, database_operations=1)
            if not batch_res.ok:
                raise CatalogSyncError(
                    batch_res.code or ErrorCode.DB_ERROR,
                    f"Failed to fetch media batch at offset {offset}: {batch_res.error}",
                )
            items = batch_res.data or []
            if not items:
                logger.debug("Media collection shrank during sync; stopping at offset %s", offset)
                break

            without_metadata = 0
            for item in items:
                if not has_valid_metadata(item):
                    without_metadata += 1
                    continue
                self._fold(operation_id, discovered, item, track_conflicts, outcome)

            outcome.media_processed += len(items)
            outcome.media_without_metadata += without_metadata
            outcome.batches_processed += 1
            outcome.keys_discovered = len(discovered)
            self.metrics.increment(
                operation_id,
                items_processed=len(items) - without_metadata,
                items_skipped=without_metadata,
                batches_processed=1,
            )
            self._publish(SyncBatchProcessed(
                operation_id=operation_id,
                batch_number=outcome.batches_processed,
                offset=offset,
                items=len(items),
                total_count=total,
                keys_discovered=outcome.keys_discovered,
            ))

            offset += batch_size
            await asyncio.sleep(0)

        if not discovered:
            return

        entries = [factory.create(e.name, e.kind, e.conflict_history) for e in discovered.values()]
        saved = await self.repository.save(entries)
        self.metrics.increment(operation_id, database_operations=1)
        if not saved.ok:
            raise CatalogSyncError(saved.code or ErrorCode.DB_ERROR, f"Failed to save catalog entries: {saved.error}")
        outcome.keys_saved = len(saved.data or [])
        self._publish(EntriesSaved(operation_id=operation_id, names=tuple(e.name for e in entries)))

    def _fold(
        self,
        operation_id: str,
        discovered: dict[str, CatalogEntry],
        item: Any,
        track_conflicts: bool,
        outcome: SyncOutcome,
    ) -> None:
        for name, kind in extract_from_one(metadata_of(item)).items():
            current = discovered.get(name)
            if current is None:
                discovered[name] = factory.create(name, kind)
                continue
            if not track_conflicts or current.kind == kind:
                continue
            merged = current.with_conflict(kind)
            if merged == current:
                continue
            discovered[name] = merged
            outcome.conflicts_detected += 1
            self._publish(TypeConflictDetected(
                operation_id=operation_id,
                name=name,
                previous_kind=current.kind,
                observed_kind=kind,
            ))
