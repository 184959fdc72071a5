"""
In-process metrics for catalog operations.

Metrics are observational: every method is a no-op when disabled and none of
them raise on unknown operation ids.
"""

from __future__ import annotations

import threading
import uuid
from collections import deque
from dataclasses import dataclass
from typing import Any, Optional

from ...config import METRICS_ENABLED, METRICS_HISTORY_MAX, METRICS_ROLLING_WINDOW
from ...shared import monotonic_ms

_COUNTERS = ("items_processed", "items_skipped", "items_errored", "database_operations", "batches_processed")


@dataclass
class OperationMetrics:
    operation_name: str
    started_ms: float
    ended_ms: Optional[float] = None
    duration_ms: Optional[float] = None
    items_processed: int = 0
    items_skipped: int = 0
    items_errored: int = 0
    database_operations: int = 0
    batches_processed: int = 0


def new_operation_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class CatalogMetrics:
    def __init__(
        self,
        enabled: bool = METRICS_ENABLED,
        history_max: int = METRICS_HISTORY_MAX,
        rolling_window: int = METRICS_ROLLING_WINDOW,
    ):
        self.enabled = bool(enabled)
        self._rolling_window = max(1, int(rolling_window))
        self._lock = threading.Lock()
        self._active: dict[str, OperationMetrics] = {}
        self._completed: deque[OperationMetrics] = deque(maxlen=max(1, int(history_max)))

    def start_operation(self, operation_name: str, operation_id: str) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._active[operation_id] = OperationMetrics(operation_name=operation_name, started_ms=monotonic_ms())

    def update_operation(self, operation_id: str, **values: int) -> None:
        """Overwrite counters of an active operation."""
        self._apply(operation_id, values, add=False)

    def increment(self, operation_id: str, **deltas: int) -> None:
        self._apply(operation_id, deltas, add=True)

    def _apply(self, operation_id: str, values: dict[str, int], *, add: bool) -> None:
        if not self.enabled:
            return
        with self._lock:
            metrics = self._active.get(operation_id)
            if metrics is None:
                return
            for name, value in values.items():
                if name not in _COUNTERS:
                    continue
                current = getattr(metrics, name) if add else 0
                setattr(metrics, name, current + int(value or 0))

    def complete_operation(self, operation_id: str) -> Optional[OperationMetrics]:
        if not self.enabled:
            return None
        with self._lock:
            metrics = self._active.pop(operation_id, None)
            if metrics is None:
                return None
            metrics.ended_ms = monotonic_ms()
            metrics.duration_ms = max(0.0, metrics.ended_ms - metrics.started_ms)
            self._completed.append(metrics)
            return metrics

    def get_operation(self, operation_id: str) -> Optional[OperationMetrics]:
        with self._lock:
            return self._active.get(operation_id)

    def completed_operations(self, limit: int = 50) -> list[OperationMetrics]:
        with self._lock:
            items = list(self._completed)
        return items[-max(0, int(limit)):] if limit else []

    def summary(self) -> dict[str, Any]:
        with self._lock:
            active = len(self._active)
            completed = list(self._completed)
        recent = [m.duration_ms for m in completed[-self._rolling_window:] if m.duration_ms is not None]
        return {
            "enabled": self.enabled,
            "active_operations": active,
            "completed_operations": len(completed),
            "average_duration_ms": round(sum(recent) / len(recent), 3) if recent else 0.0,
            "total_items_processed": sum(m.items_processed for m in completed),
            "total_items_skipped": sum(m.items_skipped for m in completed),
            "total_items_errored": sum(m.items_errored for m in completed),
            "total_database_operations": sum(m.database_operations for m in completed),
            "total_batches_processed": sum(m.batches_processed for m in completed),
        }

    def reset(self) -> None:
        with self._lock:
            self._active.clear()
            self._completed.clear()
