"""
Database schema for the field catalog.

Tables are created idempotently; there are no versioned migrations.
"""
from ...shared import Result, get_logger

logger = get_logger(__name__)

CATALOG_TABLE = "catalog_fields"
MEDIA_TABLE = "media"

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {CATALOG_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    kind TEXT NOT NULL,
    conflict_history TEXT,                      -- JSON array of kinds, NULL until a conflict
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_catalog_fields_kind ON {CATALOG_TABLE}(kind);

CREATE TABLE IF NOT EXISTS {MEDIA_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    filepath TEXT NOT NULL UNIQUE,
    metadata_raw TEXT,                          -- JSON object from the ingestion pipeline
    indexed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


async def init_schema(db) -> Result[bool]:
    """Create catalog and media tables if they do not exist."""
    res = await db.aexecutescript(SCHEMA_SQL)
    if not res.ok:
        logger.error("Schema initialization failed: %s", res.error)
        return res
    logger.debug("Schema ready at %s", getattr(db, "db_path", "<memory>"))
    return Result.Ok(True)
