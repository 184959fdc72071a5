from types import MappingProxyType

from fieldcat_backend.features.catalog import factory
from fieldcat_backend.features.catalog.extractor import extract_from_many, extract_from_one, has_valid_metadata
from fieldcat_backend.features.catalog.models import CatalogEntry, MediaMetadata, ValueKind


def test_first_seen_wins_across_items() -> None:
    items = [
        MediaMetadata(id=1, metadata={"Make": "Canon"}),
        MediaMetadata(id=2, metadata={"Make": 12345}),
    ]
    assert extract_from_many(items) == {"Make": ValueKind.TEXT}


def test_items_without_valid_metadata_are_skipped() -> None:
    items = [
        MediaMetadata(id=1, metadata=None),
        {"id": 2, "metadata": "not a mapping"},
        {"id": 3},
        None,
        MediaMetadata(id=4, metadata={"ISO": 100}),
    ]
    assert extract_from_many(items) == {"ISO": ValueKind.NUMBER}


def test_empty_mapping_is_valid_metadata() -> None:
    assert has_valid_metadata(MediaMetadata(id=1, metadata={})) is True
    assert has_valid_metadata({"id": 1, "metadata": MappingProxyType({})}) is True
    assert has_valid_metadata(MediaMetadata(id=1)) is False
    assert has_valid_metadata(None) is False


def test_extract_from_one() -> None:
    found = extract_from_one({"Model": "EOS R5", "Keywords": ["a", "b"], "Flash": False})
    assert found == {
        "Model": ValueKind.TEXT,
        "Keywords": ValueKind.TEXT_LIST,
        "Flash": ValueKind.UNSUPPORTED,
    }
    assert extract_from_one(None) == {}


def test_extraction_does_not_mutate_input() -> None:
    metadata = {"Make": "Canon"}
    extract_from_many([MediaMetadata(id=1, metadata=metadata)])
    assert metadata == {"Make": "Canon"}


def test_factory_preserves_order_and_starts_without_history() -> None:
    entries = factory.create_from_map({"b": ValueKind.TEXT, "a": ValueKind.NUMBER})
    assert [e.name for e in entries] == ["b", "a"]
    assert all(e.id is None and e.conflict_history is None for e in entries)


def test_with_conflict_seeds_and_accumulates_history() -> None:
    entry = CatalogEntry(name="ISO", kind=ValueKind.NUMBER, id=7)
    once = entry.with_conflict(ValueKind.TEXT)
    assert once.kind == ValueKind.UNSUPPORTED
    assert once.conflict_history == (ValueKind.NUMBER, ValueKind.TEXT)
    assert once.id == 7

    twice = once.with_conflict(ValueKind.TEXT_LIST)
    assert twice.conflict_history == (ValueKind.NUMBER, ValueKind.TEXT, ValueKind.TEXT_LIST)
    assert twice.with_conflict(ValueKind.TEXT) == twice
