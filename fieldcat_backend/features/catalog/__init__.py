"""Metadata field catalog: classification, incremental merge, full rebuild, queries."""
from .classifier import classify
from .errors import CatalogSyncError
from .events import EventBus
from .extractor import extract_from_many, extract_from_one, has_valid_metadata
from .media_store import SqliteMediaStore
from .metrics import CatalogMetrics
from .models import (
    CatalogEntry,
    CatalogPage,
    MediaMetadata,
    ProcessCommand,
    ProcessOutcome,
    SyncCommand,
    SyncOutcome,
    ValueKind,
)
from .processor import IncrementalProcessor
from .query import CatalogQueryService
from .repository import SqliteCatalogRepository
from .synchronizer import FullSynchronizer

__all__ = [
    "classify",
    "extract_from_one",
    "extract_from_many",
    "has_valid_metadata",
    "CatalogEntry",
    "CatalogPage",
    "MediaMetadata",
    "ProcessCommand",
    "ProcessOutcome",
    "SyncCommand",
    "SyncOutcome",
    "ValueKind",
    "CatalogSyncError",
    "EventBus",
    "CatalogMetrics",
    "IncrementalProcessor",
    "FullSynchronizer",
    "CatalogQueryService",
    "SqliteCatalogRepository",
    "SqliteMediaStore",
]
