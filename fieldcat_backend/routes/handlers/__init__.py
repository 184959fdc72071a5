"""
Route handlers.
"""
from .catalog import register_catalog_routes

__all__ = ["register_catalog_routes"]
