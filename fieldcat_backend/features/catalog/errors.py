"""Catalog operation errors."""

from __future__ import annotations

from enum import Enum

from ...shared import ErrorCode


class CatalogSyncError(Exception):
    """Full synchronization failed; the root cause is chained as `__cause__`."""

    def __init__(self, code: ErrorCode | str | Enum, message: str):
        self.code = str(code.value if isinstance(code, Enum) else code)
        self.message = message
        super().__init__(f"[{self.code}] {message}")
