"""
Structural validation for catalog commands and batch windows.

Validators are stateless and report every violated rule at once.
"""

from __future__ import annotations

from typing import Any

from ...config import SYNC_BATCH_SIZE_MAX
from .models import ProcessCommand, SyncCommand, ValidationResult


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_process_command(command: Any) -> ValidationResult:
    errors: list[str] = []
    if command is None:
        return ValidationResult.from_errors(["command is required"])
    if not isinstance(command, ProcessCommand):
        return ValidationResult.from_errors(["command must be a ProcessCommand"])
    items = command.items
    if items is None:
        errors.append("items is required")
    elif not isinstance(items, (list, tuple)) or len(items) == 0:
        errors.append("items must be a non-empty list")
    return ValidationResult.from_errors(errors)


def validate_sync_command(command: Any) -> ValidationResult:
    """A missing command means "sync with defaults"."""
    if command is None:
        return ValidationResult.from_errors([])
    if not isinstance(command, SyncCommand):
        return ValidationResult.from_errors(["command must be a SyncCommand"])
    errors: list[str] = []
    batch_size = command.batch_size
    if batch_size is not None:
        if not _is_int(batch_size) or batch_size <= 0:
            errors.append("batch_size must be a positive integer")
        elif batch_size > SYNC_BATCH_SIZE_MAX:
            errors.append(f"batch_size cannot exceed {SYNC_BATCH_SIZE_MAX}")
    if command.track_conflicts is not None and not isinstance(command.track_conflicts, bool):
        errors.append("track_conflicts must be a boolean")
    return ValidationResult.from_errors(errors)


def validate_batch_window(batch_size: Any, offset: Any, total_count: Any) -> ValidationResult:
    errors: list[str] = []
    if not _is_int(batch_size) or batch_size <= 0:
        errors.append("batch_size must be a positive integer")
    if not _is_int(offset) or offset < 0:
        errors.append("offset must be a non-negative integer")
    if not _is_int(total_count) or total_count < 0:
        errors.append("total_count must be a non-negative integer")
    if not errors and total_count > 0 and offset >= total_count:
        errors.append("offset cannot be greater than or equal to total_count")
    return ValidationResult.from_errors(errors)
