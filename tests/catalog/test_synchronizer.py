import pytest

from fieldcat_backend.features.catalog.errors import CatalogSyncError
from fieldcat_backend.features.catalog.events import (
    CatalogCleared,
    EventBus,
    SyncBatchProcessed,
    SyncCompleted,
    SyncFailed,
    SyncStarted,
    TypeConflictDetected,
)
from fieldcat_backend.features.catalog.media_store import SqliteMediaStore
from fieldcat_backend.features.catalog.models import CatalogEntry, MediaMetadata, SyncCommand, ValueKind
from fieldcat_backend.features.catalog.repository import SqliteCatalogRepository
from fieldcat_backend.features.catalog.synchronizer import FullSynchronizer
from fieldcat_backend.shared import Result


class _Media:
    def __init__(self, maps):
        self.items = [MediaMetadata(id=i, metadata=m) for i, m in enumerate(maps, start=1)]
        self.windows = []

    async def count_all(self):
        return Result.Ok(len(self.items))

    async def find_metadata_batch(self, batch_size, offset):
        self.windows.append((batch_size, offset))
        return Result.Ok(self.items[offset:offset + batch_size])


class _Repo:
    def __init__(self):
        self.entries = {}
        self.clear_result = None
        self.save_result = None

    async def clear(self):
        if self.clear_result is not None:
            return self.clear_result
        count = len(self.entries)
        self.entries = {}
        return Result.Ok(count)

    async def save(self, entries):
        if self.save_result is not None:
            return self.save_result
        for e in entries:
            self.entries[e.name] = e
        return Result.Ok(list(entries))


@pytest.mark.asyncio
async def test_empty_collection_returns_zero_outcome() -> None:
    media = _Media([])
    outcome = await FullSynchronizer(_Repo(), media).synchronize()

    assert outcome.media_processed == 0
    assert outcome.keys_discovered == 0
    assert outcome.keys_saved == 0
    assert outcome.batches_processed == 0
    assert outcome.catalog_cleared is True
    assert media.windows == []


@pytest.mark.asyncio
async def test_batches_walk_the_collection_in_offset_order() -> None:
    media = _Media([{"A": 1}, {"B": "x"}, None, {"C": ["t"]}, {"A": "late"}])
    repo = _Repo()
    outcome = await FullSynchronizer(repo, media).synchronize(SyncCommand(batch_size=2))

    assert media.windows == [(2, 0), (2, 2), (2, 4)]
    assert outcome.batches_processed == 3
    assert outcome.media_processed == 5
    assert outcome.media_without_metadata == 1
    assert outcome.keys_discovered == 3
    assert outcome.keys_saved == 3
    # First observed kind wins by default.
    assert repo.entries["A"].kind == ValueKind.NUMBER
    assert repo.entries["A"].conflict_history is None
    assert outcome.conflicts_detected == 0


@pytest.mark.asyncio
async def test_track_conflicts_applies_the_conflict_rule() -> None:
    media = _Media([{"A": 1}, {"A": "late"}])
    repo = _Repo()
    bus = EventBus()
    conflicts = []
    bus.subscribe(conflicts.append, TypeConflictDetected)

    outcome = await FullSynchronizer(repo, media, events=bus).synchronize(
        SyncCommand(batch_size=1, track_conflicts=True)
    )

    assert repo.entries["A"].kind == ValueKind.UNSUPPORTED
    assert repo.entries["A"].conflict_history == (ValueKind.NUMBER, ValueKind.TEXT)
    assert outcome.conflicts_detected == 1
    assert len(conflicts) == 1


@pytest.mark.asyncio
async def test_track_conflicts_default_comes_from_constructor() -> None:
    media = _Media([{"A": 1}, {"A": "late"}])
    repo = _Repo()
    await FullSynchronizer(repo, media, track_conflicts=True).synchronize()
    assert repo.entries["A"].kind == ValueKind.UNSUPPORTED


@pytest.mark.asyncio
async def test_missing_table_on_clear_is_success() -> None:
    repo = _Repo()
    repo.clear_result = Result.Err("DB_ERROR", "Operational error: no such table: catalog_fields")
    outcome = await FullSynchronizer(repo, _Media([{"A": 1}])).synchronize()
    assert outcome.catalog_cleared is True
    assert outcome.keys_saved == 1


@pytest.mark.asyncio
async def test_other_clear_failure_is_fatal() -> None:
    repo = _Repo()
    repo.clear_result = Result.Err("DB_ERROR", "disk I/O error")
    media = _Media([{"A": 1}])
    bus = EventBus()
    failures = []
    bus.subscribe(failures.append, SyncFailed)

    with pytest.raises(CatalogSyncError) as excinfo:
        await FullSynchronizer(repo, media, events=bus).synchronize()

    assert excinfo.value.code == "DB_ERROR"
    assert "disk I/O error" in excinfo.value.message
    assert media.windows == []
    assert len(failures) == 1


@pytest.mark.asyncio
async def test_invalid_command_clears_nothing() -> None:
    repo = _Repo()
    repo.entries = {"A": CatalogEntry(name="A", kind=ValueKind.TEXT, id=1)}
    with pytest.raises(CatalogSyncError) as excinfo:
        await FullSynchronizer(repo, _Media([{"A": 1}])).synchronize(SyncCommand(batch_size=20_000))
    assert excinfo.value.code == "INVALID_INPUT"
    assert "A" in repo.entries


@pytest.mark.asyncio
async def test_save_failure_is_wrapped() -> None:
    repo = _Repo()
    repo.save_result = Result.Err("CONFLICT", "Integrity error: UNIQUE constraint failed")
    with pytest.raises(CatalogSyncError) as excinfo:
        await FullSynchronizer(repo, _Media([{"A": 1}])).synchronize()
    assert excinfo.value.code == "CONFLICT"


@pytest.mark.asyncio
async def test_unexpected_exception_is_chained() -> None:
    class _Exploding(_Media):
        async def find_metadata_batch(self, batch_size, offset):
            raise RuntimeError("socket closed")

    with pytest.raises(CatalogSyncError) as excinfo:
        await FullSynchronizer(_Repo(), _Exploding([{"A": 1}])).synchronize()
    assert excinfo.value.code == "SYNC_FAILED"
    assert isinstance(excinfo.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_event_sequence() -> None:
    bus = EventBus()
    events = []
    bus.subscribe(events.append)
    await FullSynchronizer(_Repo(), _Media([{"A": 1}, {"B": 2}]), events=bus).synchronize(SyncCommand(batch_size=1))

    kinds = [type(e) for e in events]
    assert kinds[0] is SyncStarted
    assert kinds[1] is CatalogCleared
    assert kinds.count(SyncBatchProcessed) == 2
    assert kinds[-1] is SyncCompleted
    batches = [e for e in events if isinstance(e, SyncBatchProcessed)]
    assert batches[-1].progress == 1.0


@pytest.mark.asyncio
async def test_full_sync_is_deterministic_on_sqlite(db) -> None:
    media = SqliteMediaStore(db)
    for i, metadata in enumerate([{"Make": "Canon", "ISO": 100}, {"Make": 5, "Tags": ["a"]}, None]):
        res = await media.add_media(f"/media/{i}.jpg", metadata)
        assert res.ok, res.error
    repo = SqliteCatalogRepository(db)
    sync = FullSynchronizer(repo, media)

    def _snapshot(entries):
        return {e.name: e.kind for e in entries}

    first = await sync.synchronize(SyncCommand(batch_size=2))
    first_entries = _snapshot((await repo.find_all()).data)
    second = await sync.synchronize(SyncCommand(batch_size=2))
    second_entries = _snapshot((await repo.find_all()).data)

    assert first_entries == second_entries == {
        "ISO": ValueKind.NUMBER,
        "Make": ValueKind.TEXT,
        "Tags": ValueKind.TEXT_LIST,
    }
    assert first.keys_saved == second.keys_saved == 3
    assert second.media_without_metadata == 1
