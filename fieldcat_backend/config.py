"""
Configuration for the media field catalog.
"""
import logging
import os
from pathlib import Path

from .utils import env_bool

logger = logging.getLogger(__name__)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid float for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_bool(default: bool, *names: str) -> bool:
    for name in names:
        if name and name in os.environ:
            return env_bool(name, default)
    return default


def _resolve_data_dir() -> Path:
    env_path = _env_raw("FIELDCAT_DATA_DIR")
    if env_path:
        try:
            return Path(env_path).expanduser().resolve()
        except (OSError, RuntimeError):
            logger.warning("Failed to resolve FIELDCAT_DATA_DIR: %s, using fallback", env_path)
    return (Path.cwd() / "_fieldcat").resolve()


DATA_DIR_PATH = _resolve_data_dir()

# SQLite catalog database
CATALOG_DB_PATH = Path(_env_raw("FIELDCAT_DB_PATH", default=str(DATA_DIR_PATH / "catalog.sqlite")) or "")
CATALOG_DB = str(CATALOG_DB_PATH)


def initialize_directories() -> None:
    """Create the data directory lazily (import stays side-effect free)."""
    CATALOG_DB_PATH.parent.mkdir(parents=True, exist_ok=True)


# Database tuning
DB_TIMEOUT = _env_float(30.0, "FIELDCAT_DB_TIMEOUT", min_value=1.0, max_value=300.0)
DB_QUERY_TIMEOUT = _env_float(60.0, "FIELDCAT_DB_QUERY_TIMEOUT", min_value=1.0, max_value=600.0)
# SQLite's default SQLITE_MAX_VARIABLE_NUMBER is 999 on older builds; stay well under it.
DB_IN_CLAUSE_CHUNK = _env_int(500, "FIELDCAT_DB_IN_CLAUSE_CHUNK", min_value=1, max_value=900)

# Classification
LONG_TEXT_THRESHOLD = 30

# Full synchronization
SYNC_BATCH_SIZE_MAX = 10_000
SYNC_BATCH_SIZE = _env_int(500, "FIELDCAT_SYNC_BATCH_SIZE", min_value=1, max_value=SYNC_BATCH_SIZE_MAX)
SYNC_TRACK_CONFLICTS = _env_bool(False, "FIELDCAT_SYNC_TRACK_CONFLICTS")

# Query façade
PAGE_SIZE_DEFAULT = _env_int(50, "FIELDCAT_PAGE_SIZE_DEFAULT", min_value=1, max_value=1000)
PAGE_SIZE_MAX = _env_int(500, "FIELDCAT_PAGE_SIZE_MAX", min_value=1, max_value=10_000)

# Metrics
METRICS_HISTORY_MAX = _env_int(100, "FIELDCAT_METRICS_HISTORY_MAX", min_value=1, max_value=10_000)
METRICS_ROLLING_WINDOW = _env_int(10, "FIELDCAT_METRICS_ROLLING_WINDOW", min_value=1, max_value=1000)
METRICS_ENABLED = _env_bool(True, "FIELDCAT_METRICS_ENABLED")
