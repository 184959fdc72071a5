import pytest

from fieldcat_backend.features.catalog.media_store import SqliteMediaStore


@pytest.mark.asyncio
async def test_count_and_batches_are_ordered_by_id(db) -> None:
    store = SqliteMediaStore(db)
    for i in range(5):
        res = await store.add_media(f"/media/{i}.png", {"Index": i})
        assert res.ok, res.error

    count = await store.count_all()
    assert count.ok
    assert count.data == 5

    batch = await store.find_metadata_batch(2, 2)
    assert batch.ok
    assert [item.metadata["Index"] for item in batch.data] == [2, 3]

    tail = await store.find_metadata_batch(10, 4)
    assert len(tail.data) == 1


@pytest.mark.asyncio
async def test_missing_or_invalid_metadata_decodes_to_none(db) -> None:
    store = SqliteMediaStore(db)
    assert (await store.add_media("/media/none.png")).ok
    assert (await store.add_media("/media/broken.png", "{not json")).ok
    assert (await store.add_media("/media/list.png", "[1, 2]")).ok
    assert (await store.add_media("/media/empty.png", {})).ok

    items = (await store.find_metadata_batch(10, 0)).data
    assert [item.metadata for item in items] == [None, None, None, {}]


@pytest.mark.asyncio
async def test_duplicate_filepath_is_a_conflict(db) -> None:
    store = SqliteMediaStore(db)
    assert (await store.add_media("/media/a.png", {"A": 1})).ok
    dup = await store.add_media("/media/a.png", {"A": 2})
    assert dup.ok is False
    assert dup.code == "CONFLICT"


@pytest.mark.asyncio
async def test_add_media_requires_filepath(db) -> None:
    res = await SqliteMediaStore(db).add_media("", {"A": 1})
    assert res.ok is False
    assert res.code == "INVALID_INPUT"
