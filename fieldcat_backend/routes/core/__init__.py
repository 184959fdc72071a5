"""
Core utilities for route handlers.
"""
from .request_json import _read_json
from .response import _json_response, safe_error_message
from .services import _require_services, dispose_services, set_services

__all__ = [
    "_json_response",
    "safe_error_message",
    "_read_json",
    "_require_services",
    "dispose_services",
    "set_services",
]
