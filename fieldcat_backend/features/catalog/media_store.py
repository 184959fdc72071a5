"""
Media collection access for catalog synchronization.

The store exposes the collection in a stable order (by id) so offset/limit
windows walk it deterministically. Rows inserted or deleted during a walk may
be skipped or counted twice.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Optional

from ...adapters.db import MEDIA_TABLE
from ...shared import ErrorCode, Result, get_logger
from .models import MediaMetadata

logger = get_logger(__name__)


def _decode_metadata(media_id: Any, raw: Any) -> Optional[Mapping[str, Any]]:
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.debug("Undecodable metadata for media %s", media_id)
        return None
    return value if isinstance(value, dict) else None


class SqliteMediaStore:
    def __init__(self, db):
        self.db = db

    async def count_all(self) -> Result[int]:
        res = await self.db.aquery(f"SELECT COUNT(*) AS total FROM {MEDIA_TABLE}")
        if not res.ok:
            return Result.Err(res.code or ErrorCode.DB_ERROR, res.error or "Media count failed")
        return Result.Ok(int((res.data or [{}])[0].get("total") or 0))

    async def find_metadata_batch(self, batch_size: int, offset: int) -> Result[list[MediaMetadata]]:
        """Fetch one window of the collection, metadata only."""
        res = await self.db.aquery(
            f"SELECT id, metadata_raw FROM {MEDIA_TABLE} ORDER BY id ASC LIMIT ? OFFSET ?",
            (int(batch_size), int(offset)),
        )
        if not res.ok:
            return Result.Err(res.code or ErrorCode.DB_ERROR, res.error or "Media batch fetch failed")
        return Result.Ok([
            MediaMetadata(id=row["id"], metadata=_decode_metadata(row["id"], row.get("metadata_raw")))
            for row in res.data or []
        ])

    async def add_media(self, filepath: str, metadata: Any = None) -> Result[int]:
        """Record a media file and its metadata map (stored as JSON text)."""
        if not filepath or not isinstance(filepath, str):
            return Result.Err(ErrorCode.INVALID_INPUT, "filepath is required")
        if metadata is None:
            raw = None
        elif isinstance(metadata, str):
            raw = metadata
        else:
            try:
                raw = json.dumps(metadata, ensure_ascii=False, default=str)
            except (TypeError, ValueError) as exc:
                return Result.Err(ErrorCode.INVALID_JSON, f"Metadata is not JSON serializable: {exc}")
        res = await self.db.aexecute(
            f"INSERT INTO {MEDIA_TABLE} (filepath, metadata_raw) VALUES (?, ?)",
            (filepath, raw),
        )
        if not res.ok:
            return Result.Err(res.code or ErrorCode.DB_ERROR, res.error or "Failed to add media", **res.meta)
        return Result.Ok(int(res.data or 0))
