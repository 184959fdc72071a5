"""
SQLite database connection manager.

Implementation note:
- This adapter uses `aiosqlite` internally and exposes async methods only.
- One connection per database, serialized by an asyncio lock; statements
  issued inside `atransaction()` reuse the lock already held by the
  transaction.

Critical guarantee:
- The adapter never raises to callers; it returns `Result(...)`.
"""

from __future__ import annotations

import asyncio
import contextvars
import random
import re
import sqlite3
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite

from ...config import DB_IN_CLAUSE_CHUNK, DB_QUERY_TIMEOUT, DB_TIMEOUT
from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)

SQLITE_BUSY_TIMEOUT_MS = max(1000, int(float(DB_TIMEOUT) * 1000))
# Negative cache_size is in KiB. -16000 ~= 16 MiB cache.
SQLITE_CACHE_SIZE_KIB = -16000

_IN_TX: contextvars.ContextVar[bool] = contextvars.ContextVar("fieldcat_db_in_tx", default=False)
_COLUMN_NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_INSERT_PATTERN = re.compile(r"^\s*(insert|replace)\b", re.IGNORECASE)
_IN_QUERY_FORBIDDEN = re.compile(
    r"(--|/\*|\*/|;|\bpragma\b|\battach\b|\bdetach\b|\bvacuum\b|\balter\b|\bdrop\b|\binsert\b|\bupdate\b|\bdelete\b)",
    re.IGNORECASE,
)
_BEGIN_STATEMENTS = {
    "deferred": "BEGIN DEFERRED",
    "immediate": "BEGIN IMMEDIATE",
    "exclusive": "BEGIN EXCLUSIVE",
}


def _is_locked_error(exc: Exception) -> bool:
    msg = str(exc).lower()
    return "database is locked" in msg or "database table is locked" in msg


def _validate_in_base_query(base_query: str) -> tuple[bool, str]:
    """
    Validate the `base_query` template used by `aquery_in`.

    Even though `base_query` is expected to be a constant defined in code,
    enforcing a conservative allowlist prevents accidental misuse that could
    reintroduce SQL injection.
    """
    q = str(base_query or "").strip()
    if not q:
        return False, "base_query is empty"
    if q.count("{IN_CLAUSE}") != 1:
        return False, "base_query must contain exactly one {IN_CLAUSE}"
    if not re.match(r"^(select|with)\b", q.lower()):
        return False, "base_query must be a SELECT query"
    if _IN_QUERY_FORBIDDEN.search(q):
        return False, "base_query contains forbidden SQL tokens"
    return True, ""


class Sqlite:
    """
    Async SQLite adapter (aiosqlite-backed).

    The connection is opened lazily on first use, in autocommit mode; batch
    writes and `atransaction()` manage BEGIN/COMMIT explicitly.
    """

    def __init__(self, db_path: str, timeout: float = DB_TIMEOUT, query_timeout: float | None = DB_QUERY_TIMEOUT):
        self.db_path = Path(db_path)
        self._timeout = float(timeout)
        self._query_timeout = float(query_timeout or 0.0)
        self._conn: aiosqlite.Connection | None = None
        self._lock: asyncio.Lock | None = None
        self._lock_retry_attempts = 6
        self._lock_retry_base_seconds = 0.05
        self._lock_retry_max_seconds = 0.75

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def _apply_connection_pragmas(self, conn: aiosqlite.Connection) -> None:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA cache_size={SQLITE_CACHE_SIZE_KIB}")
        await conn.execute("PRAGMA temp_store=MEMORY")
        await conn.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")

    async def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            # Use autocommit mode; we manage transactions explicitly (BEGIN/COMMIT) when needed.
            conn = await aiosqlite.connect(str(self.db_path), timeout=self._timeout, isolation_level=None)
            conn.row_factory = sqlite3.Row
            await self._apply_connection_pragmas(conn)
            self._conn = conn
        return self._conn

    async def _sleep_backoff(self, attempt: int) -> None:
        delay = min(self._lock_retry_max_seconds, self._lock_retry_base_seconds * (2 ** attempt))
        await asyncio.sleep(delay * (0.5 + random.random() / 2))

    @staticmethod
    def _rows_to_dicts(rows: Any) -> list[dict[str, Any]]:
        if not rows:
            return []
        return [dict(r) for r in rows]

    @staticmethod
    def _cursor_write_result(query: str, cursor: Any) -> Result[Any]:
        # lastrowid is connection-wide; only meaningful right after an INSERT.
        if _INSERT_PATTERN.match(query):
            last_id = getattr(cursor, "lastrowid", None)
            if last_id:
                return Result.Ok(last_id)
        rowcount = getattr(cursor, "rowcount", None)
        return Result.Ok(rowcount if rowcount is not None and rowcount >= 0 else 0)

    async def _with_query_timeout(self, coro: Awaitable[Result[Any]]) -> Result[Any]:
        if self._query_timeout > 0:
            try:
                return await asyncio.wait_for(coro, timeout=self._query_timeout)
            except asyncio.TimeoutError:
                return Result.Err(ErrorCode.TIMEOUT, "Database operation timed out")
        return await coro

    async def _map_errors(self, coro: Awaitable[Result[Any]]) -> Result[Any]:
        """Await a raw DB coroutine and translate driver exceptions into `Result`."""
        try:
            return await self._with_query_timeout(coro)
        except sqlite3.IntegrityError as exc:
            logger.warning("Integrity error: %s", exc)
            return Result.Err(ErrorCode.CONFLICT, f"Integrity error: {exc}", retryable=True)
        except sqlite3.OperationalError as exc:
            if "interrupted" in str(exc).lower():
                return Result.Err(ErrorCode.TIMEOUT, "Database operation interrupted (query timeout)")
            logger.error("Operational error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, f"Operational error: {exc}")
        except sqlite3.DatabaseError as exc:
            logger.error("Database error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, str(exc))
        except Exception as exc:
            logger.error("Unexpected database error: %s", exc)
            return Result.Err(ErrorCode.DB_ERROR, str(exc))

    async def _run(self, coro_factory) -> Result[Any]:
        if _IN_TX.get():
            return await self._map_errors(coro_factory())
        async with self._get_lock():
            return await self._map_errors(coro_factory())

    async def _execute_raw(self, query: str, params: tuple | None, fetch: bool) -> Result[Any]:
        conn = await self._connection()
        for attempt in range(self._lock_retry_attempts + 1):
            try:
                cursor = await conn.execute(query, params or ())
                try:
                    if fetch:
                        rows = await cursor.fetchall()
                        return Result.Ok(self._rows_to_dicts(rows))
                    return self._cursor_write_result(query, cursor)
                finally:
                    await cursor.close()
            except sqlite3.OperationalError as exc:
                if _is_locked_error(exc) and attempt < self._lock_retry_attempts:
                    await self._sleep_backoff(attempt)
                    continue
                raise
        return Result.Err(ErrorCode.DB_ERROR, "Query failed after retries")

    async def _executemany_raw(self, query: str, params_list: list[tuple], *, own_tx: bool) -> Result[int]:
        conn = await self._connection()
        if own_tx:
            await conn.execute("BEGIN IMMEDIATE")
        try:
            cursor = await conn.executemany(query, params_list)
            rowcount = getattr(cursor, "rowcount", None)
            await cursor.close()
            if own_tx:
                await conn.execute("COMMIT")
        except BaseException:
            if own_tx:
                try:
                    await conn.execute("ROLLBACK")
                except sqlite3.Error as rollback_exc:
                    logger.warning("Rollback after failed batch write failed: %s", rollback_exc)
            raise
        return Result.Ok(int(rowcount or 0) if (rowcount or 0) > 0 else 0)

    async def aexecute(self, query: str, params: tuple | None = None, fetch: bool = False) -> Result[Any]:
        """Execute one statement; writes return lastrowid or rowcount."""
        return await self._run(lambda: self._execute_raw(query, params, fetch))

    async def aquery(self, sql: str, params: tuple | None = None) -> Result[list[dict[str, Any]]]:
        """Execute a SELECT query and return rows as dicts."""
        return await self.aexecute(sql, params, fetch=True)

    async def aquery_in(
        self,
        base_query: str,
        column: str,
        values: list[Any],
        additional_params: tuple | None = None,
    ) -> Result[list[dict[str, Any]]]:
        """
        Run `base_query` with `{IN_CLAUSE}` expanded to `column IN (?, ...)`.

        Values are chunked to stay under SQLite's bound-parameter limit; rows
        from every chunk are concatenated.
        """
        if not values:
            return Result.Ok([])
        if not isinstance(values, (list, tuple)):
            return Result.Err(ErrorCode.INVALID_INPUT, "values must be a list or tuple")
        if not _COLUMN_NAME_PATTERN.match(str(column or "")):
            return Result.Err(ErrorCode.INVALID_INPUT, f"Invalid column name: {column}")
        ok_tpl, why = _validate_in_base_query(base_query)
        if not ok_tpl:
            return Result.Err(ErrorCode.INVALID_INPUT, why or "Invalid base_query template")

        rows: list[dict[str, Any]] = []
        for start in range(0, len(values), DB_IN_CLAUSE_CHUNK):
            chunk = list(values[start:start + DB_IN_CLAUSE_CHUNK])
            placeholders = ",".join("?" for _ in chunk)
            query = base_query.replace("{IN_CLAUSE}", f"{column} IN ({placeholders})")
            params = tuple(chunk) + tuple(additional_params or ())
            res = await self.aquery(query, params)
            if not res.ok:
                return res
            rows.extend(res.data or [])
        return Result.Ok(rows)

    async def aexecutemany(self, query: str, params_list: list[tuple]) -> Result[int]:
        """Execute a parameterized statement over many param tuples, atomically."""
        if not params_list:
            return Result.Ok(0)
        own_tx = not _IN_TX.get()
        return await self._run(lambda: self._executemany_raw(query, params_list, own_tx=own_tx))

    async def aexecutescript(self, script: str) -> Result[bool]:
        """Execute a multi-statement script (schema setup)."""
        async def _script() -> Result[bool]:
            conn = await self._connection()
            cursor = await conn.executescript(script)
            await cursor.close()
            return Result.Ok(True)

        return await self._run(_script)

    async def ahas_table(self, table_name: str) -> bool:
        res = await self.aquery(
            "SELECT name FROM sqlite_master WHERE type='table' AND name = ?",
            (table_name,),
        )
        return bool(res.ok and res.data)

    @asynccontextmanager
    async def atransaction(self, mode: str = "immediate") -> AsyncIterator[Result[bool]]:
        """
        Async context manager for a DB transaction.

        Yields a `Result` describing whether BEGIN succeeded. An exception raised
        by the body rolls back and propagates; otherwise the transaction is
        committed and a failed COMMIT is reported on the yielded state.
        Nested calls join the outer transaction.
        """
        if _IN_TX.get():
            yield Result.Ok(True)
            return

        begin_stmt = _BEGIN_STATEMENTS.get(str(mode or "").lower(), "BEGIN IMMEDIATE")
        async with self._get_lock():
            tx_state = await self._map_errors(self._execute_raw(begin_stmt, None, False))
            if not tx_state.ok:
                yield tx_state
                return
            tx_state = Result.Ok(True)

            token = _IN_TX.set(True)
            try:
                yield tx_state
            except BaseException:
                await self._map_errors(self._execute_raw("ROLLBACK", None, False))
                raise
            else:
                commit_res = await self._map_errors(self._execute_raw("COMMIT", None, False))
                if not commit_res.ok:
                    tx_state.ok = False
                    tx_state.code = commit_res.code or ErrorCode.DB_ERROR.value
                    tx_state.error = commit_res.error or "Commit failed"
            finally:
                _IN_TX.reset(token)

    async def aclose(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            await conn.close()
        except sqlite3.Error as exc:
            logger.debug("Closing database connection failed: %s", exc)
