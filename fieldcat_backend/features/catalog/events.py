"""
Catalog operation events.

Events are frozen records published on an `EventBus` the caller injects into
each processor. Subscribers observe only: a failing handler is logged and the
publisher carries on.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from ...shared import get_logger
from .models import ValueKind

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProcessingStarted:
    operation_id: str
    item_count: int


@dataclass(frozen=True)
class ProcessingCompleted:
    operation_id: str
    created: int
    updated: int
    duration_ms: float


@dataclass(frozen=True)
class ProcessingFailed:
    operation_id: str
    error: str
    created: int = 0
    updated: int = 0


@dataclass(frozen=True)
class EntriesSaved:
    operation_id: str
    names: tuple[str, ...]

    @property
    def count(self) -> int:
        return len(self.names)


@dataclass(frozen=True)
class TypeConflictDetected:
    operation_id: str
    name: str
    previous_kind: ValueKind
    observed_kind: ValueKind


@dataclass(frozen=True)
class SyncStarted:
    operation_id: str
    batch_size: int


@dataclass(frozen=True)
class CatalogCleared:
    operation_id: str
    deleted: int


@dataclass(frozen=True)
class SyncBatchProcessed:
    operation_id: str
    batch_number: int
    offset: int
    items: int
    total_count: int
    keys_discovered: int

    @property
    def progress(self) -> float:
        if self.total_count <= 0:
            return 1.0
        return min(1.0, (self.offset + self.items) / self.total_count)


@dataclass(frozen=True)
class SyncCompleted:
    operation_id: str
    outcome: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SyncFailed:
    operation_id: str
    error: str
    batches_processed: int = 0
    media_processed: int = 0


EventHandler = Callable[[Any], Any]


class EventBus:
    """Explicit subscriber registry; one instance per service container."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: dict[int, tuple[Optional[type], EventHandler]] = {}
        self._next_id = 1

    def subscribe(self, handler: EventHandler, event_type: Optional[type] = None) -> int:
        """Register `handler` for every event, or only for `event_type`. Returns a subscription id."""
        with self._lock:
            subscription_id = self._next_id
            self._next_id += 1
            self._subscribers[subscription_id] = (event_type, handler)
        logger.debug("event subscriber %s registered", subscription_id)
        return subscription_id

    def unsubscribe(self, subscription_id: int) -> bool:
        with self._lock:
            return self._subscribers.pop(subscription_id, None) is not None

    def publish(self, event: Any) -> None:
        with self._lock:
            targets = list(self._subscribers.items())
        for subscription_id, (event_type, handler) in targets:
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                handler(event)
            except Exception as exc:
                logger.warning(
                    "event handler %s failed on %s: %s",
                    subscription_id,
                    type(event).__name__,
                    exc,
                )
