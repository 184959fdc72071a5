"""
Dependency injection - builds services.
Simple, debug-friendly DI without framework magic.
"""

from .adapters.db import Sqlite, init_schema
from .config import CATALOG_DB, DB_TIMEOUT, initialize_directories
from .features.catalog import (
    CatalogMetrics,
    CatalogQueryService,
    EventBus,
    FullSynchronizer,
    IncrementalProcessor,
    SqliteCatalogRepository,
    SqliteMediaStore,
)
from .shared import ErrorCode, Result, get_logger, log_success

logger = get_logger(__name__)


def _resolve_db_path(db_path: str | None) -> str:
    return db_path if db_path is not None else CATALOG_DB


def _init_db_or_error(db_path: str) -> Result[Sqlite]:
    logger.info("Initializing database: %s", db_path)
    try:
        return Result.Ok(Sqlite(db_path, timeout=DB_TIMEOUT))
    except OSError as exc:
        logger.error("Failed to initialize database: %s", exc)
        return Result.Err(ErrorCode.DB_ERROR, f"Failed to initialize database: {exc}")


async def build_services(db_path: str | None = None) -> Result[dict]:
    """
    Build the service container.

    Keys: db, catalog_repository, media_store, events, catalog_metrics,
    catalog_processor, catalog_sync, catalog_query.
    """
    if db_path is None:
        initialize_directories()
    db_res = _init_db_or_error(_resolve_db_path(db_path))
    if not db_res.ok:
        return Result.Err(db_res.code, db_res.error or "Failed to initialize database")
    db = db_res.data

    schema_res = await init_schema(db)
    if not schema_res.ok:
        await db.aclose()
        return Result.Err(schema_res.code or ErrorCode.DB_ERROR, f"Failed to initialize database: {schema_res.error}")

    repository = SqliteCatalogRepository(db)
    media_store = SqliteMediaStore(db)
    events = EventBus()
    metrics = CatalogMetrics()

    services = {
        "db": db,
        "catalog_repository": repository,
        "media_store": media_store,
        "events": events,
        "catalog_metrics": metrics,
        "catalog_processor": IncrementalProcessor(repository, events=events, metrics=metrics),
        "catalog_sync": FullSynchronizer(repository, media_store, events=events, metrics=metrics),
        "catalog_query": CatalogQueryService(repository),
    }

    log_success(logger, "All services initialized")
    return Result.Ok(services)
