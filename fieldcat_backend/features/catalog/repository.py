"""
SQLite-backed catalog repository.

All methods are async and return `Result`; the UNIQUE constraint on
`catalog_fields.name` is what arbitrates two concurrent writers racing to
insert the same name (the loser gets a retryable CONFLICT).
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable
from typing import Any, Optional

from ...adapters.db import CATALOG_TABLE
from ...shared import ErrorCode, Result, get_logger
from .models import CatalogEntry, CatalogPage, ValueKind

logger = get_logger(__name__)

_SELECT_COLUMNS = f"SELECT id, name, kind, conflict_history FROM {CATALOG_TABLE}"


def _escape_like_pattern(pattern: str) -> str:
    """Escape LIKE special characters (% and _) for literal substring matching."""
    return pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _is_missing_table(res: Result[Any]) -> bool:
    return "no such table" in str(res.error or "").lower()


def _encode_history(history: Optional[Iterable[ValueKind]]) -> Optional[str]:
    if not history:
        return None
    return json.dumps([ValueKind(k).value for k in history])


def _decode_history(raw: Any) -> Optional[tuple[ValueKind, ...]]:
    if not raw:
        return None
    try:
        values = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring undecodable conflict history: %r", raw)
        return None
    if not isinstance(values, list):
        return None
    kinds = [ValueKind.parse(v) for v in values]
    return tuple(k for k in kinds if k is not None) or None


def _row_to_entry(row: dict[str, Any]) -> CatalogEntry:
    return CatalogEntry(
        id=row.get("id"),
        name=str(row.get("name") or ""),
        kind=ValueKind.parse(row.get("kind")) or ValueKind.UNSUPPORTED,
        conflict_history=_decode_history(row.get("conflict_history")),
    )


class _WriteAborted(Exception):
    def __init__(self, result: Result[Any]):
        super().__init__(result.error)
        self.result = result


class SqliteCatalogRepository:
    """Catalog persistence over the `Sqlite` adapter."""

    def __init__(self, db):
        self.db = db

    async def _fetch_entries(self, sql: str, params: tuple = ()) -> Result[list[CatalogEntry]]:
        res = await self.db.aquery(sql, params)
        if not res.ok:
            return Result.Err(res.code or ErrorCode.DB_ERROR, res.error or "Catalog query failed")
        return Result.Ok([_row_to_entry(r) for r in res.data or []])

    async def find_all(self) -> Result[list[CatalogEntry]]:
        return await self._fetch_entries(f"{_SELECT_COLUMNS} ORDER BY name ASC")

    async def find_by_kind(self, kind: ValueKind) -> Result[list[CatalogEntry]]:
        parsed = ValueKind.parse(kind)
        if parsed is None:
            return Result.Err(ErrorCode.INVALID_INPUT, f"Unknown kind: {kind}")
        return await self._fetch_entries(f"{_SELECT_COLUMNS} WHERE kind = ? ORDER BY name ASC", (parsed.value,))

    async def find_by_names(self, names: Iterable[str]) -> Result[list[CatalogEntry]]:
        wanted = list(dict.fromkeys(str(n) for n in names or ()))
        if not wanted:
            return Result.Ok([])
        res = await self.db.aquery_in(f"{_SELECT_COLUMNS} WHERE {{IN_CLAUSE}} ORDER BY name ASC", "name", wanted)
        if not res.ok:
            return Result.Err(res.code or ErrorCode.DB_ERROR, res.error or "Catalog query failed")
        entries = [_row_to_entry(r) for r in res.data or []]
        # Chunked IN queries are each sorted; restore a global order.
        entries.sort(key=lambda e: e.name)
        return Result.Ok(entries)

    async def find_existing_entries(self) -> Result[dict[str, CatalogEntry]]:
        res = await self.find_all()
        if not res.ok:
            return Result.Err(res.code, res.error or "Catalog query failed")
        return Result.Ok({e.name: e for e in res.data or []})

    async def find_existing_names(self) -> Result[set[str]]:
        res = await self.db.aquery(f"SELECT name FROM {CATALOG_TABLE}")
        if not res.ok:
            return Result.Err(res.code or ErrorCode.DB_ERROR, res.error or "Catalog query failed")
        return Result.Ok({str(r["name"]) for r in res.data or []})

    async def save(self, entries: Iterable[CatalogEntry]) -> Result[list[CatalogEntry]]:
        """
        Upsert entries by identity: those without an id are inserted, those
        with an id overwrite the row with that id, or recreate it when it is
        gone (e.g. a full sync cleared the catalog meanwhile). The whole call
        runs in one transaction.

        Returns the saved entries with their ids populated.
        """
        batch = list(entries or ())
        if not batch:
            return Result.Ok([])

        inserts = [e for e in batch if e.id is None]
        updates = [e for e in batch if e.id is not None]

        try:
            async with self.db.atransaction(mode="immediate") as tx:
                if not tx.ok:
                    return Result.Err(tx.code or ErrorCode.DB_ERROR, tx.error or "Failed to begin transaction")

                if inserts:
                    ins = await self.db.aexecutemany(
                        f"INSERT INTO {CATALOG_TABLE} (name, kind, conflict_history) VALUES (?, ?, ?)",
                        [(e.name, e.kind.value, _encode_history(e.conflict_history)) for e in inserts],
                    )
                    if not ins.ok:
                        raise _WriteAborted(ins)

                if updates:
                    upd = await self.db.aexecutemany(
                        f"""
                        INSERT INTO {CATALOG_TABLE} (id, name, kind, conflict_history)
                        VALUES (?, ?, ?, ?)
                        ON CONFLICT(id) DO UPDATE SET
                            name = excluded.name,
                            kind = excluded.kind,
                            conflict_history = excluded.conflict_history,
                            updated_at = CURRENT_TIMESTAMP
                        """,
                        [(e.id, e.name, e.kind.value, _encode_history(e.conflict_history)) for e in updates],
                    )
                    if not upd.ok:
                        raise _WriteAborted(upd)

                ids_by_name: dict[str, int] = {}
                if inserts:
                    rows = await self.db.aquery_in(
                        f"SELECT id, name FROM {CATALOG_TABLE} WHERE {{IN_CLAUSE}}",
                        "name",
                        [e.name for e in inserts],
                    )
                    if not rows.ok:
                        raise _WriteAborted(rows)
                    ids_by_name = {str(r["name"]): int(r["id"]) for r in rows.data or []}
        except _WriteAborted as aborted:
            res = aborted.result
            return Result.Err(res.code or ErrorCode.DB_ERROR, res.error or "Catalog write failed", **res.meta)

        if not tx.ok:
            return Result.Err(tx.code or ErrorCode.DB_ERROR, tx.error or "Commit failed")

        saved = [
            CatalogEntry(name=e.name, kind=e.kind, conflict_history=e.conflict_history, id=ids_by_name.get(e.name))
            for e in inserts
        ]
        saved.extend(updates)
        return Result.Ok(saved, inserted=len(inserts), updated=len(updates))

    async def clear(self) -> Result[int]:
        """Delete every entry. A missing table counts as an already empty catalog."""
        res = await self.db.aexecute(f"DELETE FROM {CATALOG_TABLE}")
        if not res.ok:
            if _is_missing_table(res):
                logger.info("Catalog table absent; nothing to clear")
                return Result.Ok(0)
            return Result.Err(res.code or ErrorCode.DB_ERROR, res.error or "Failed to clear catalog")
        return Result.Ok(int(res.data or 0))

    async def find_paginated(
        self,
        page: int = 1,
        per_page: int = 50,
        kind: Optional[ValueKind] = None,
        name_contains: Optional[str] = None,
    ) -> Result[CatalogPage]:
        """
        One page of entries sorted by name.

        `name_contains` is a case-insensitive substring match (SQLite LIKE,
        which folds ASCII letters only).
        """
        if page < 1 or per_page < 1:
            return Result.Err(ErrorCode.INVALID_INPUT, "page and per_page must be positive integers")

        clauses: list[str] = []
        params: list[Any] = []
        if kind is not None:
            parsed = ValueKind.parse(kind)
            if parsed is None:
                return Result.Err(ErrorCode.INVALID_INPUT, f"Unknown kind: {kind}")
            clauses.append("kind = ?")
            params.append(parsed.value)
        if name_contains:
            clauses.append("name LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like_pattern(name_contains)}%")
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        count_res = await self.db.aquery(f"SELECT COUNT(*) AS total FROM {CATALOG_TABLE}{where}", tuple(params))
        if not count_res.ok:
            return Result.Err(count_res.code or ErrorCode.DB_ERROR, count_res.error or "Catalog count failed")
        total = int((count_res.data or [{}])[0].get("total") or 0)

        rows = await self._fetch_entries(
            f"{_SELECT_COLUMNS}{where} ORDER BY name ASC LIMIT ? OFFSET ?",
            tuple(params) + (per_page, (page - 1) * per_page),
        )
        if not rows.ok:
            return Result.Err(rows.code, rows.error or "Catalog query failed")

        return Result.Ok(
            CatalogPage(
                fields=rows.data or [],
                page=page,
                per_page=per_page,
                total_count=total,
                total_pages=math.ceil(total / per_page) if total else 0,
            )
        )
