"""Database adapters."""
from .schema import CATALOG_TABLE, MEDIA_TABLE, init_schema
from .sqlite import Sqlite

__all__ = ["Sqlite", "init_schema", "CATALOG_TABLE", "MEDIA_TABLE"]
