"""
HTTP routes.
"""
from .registry import API_PREFIX, create_app

__all__ = ["API_PREFIX", "create_app"]
