"""
Shared types, enums, and constants.
"""
from enum import Enum


# Error codes
class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""
    OK = "OK"

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_JSON = "INVALID_JSON"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Feature / service availability
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Server / infrastructure
    DB_ERROR = "DB_ERROR"
    TIMEOUT = "TIMEOUT"

    # Operation errors
    PROCESS_FAILED = "PROCESS_FAILED"
    SYNC_FAILED = "SYNC_FAILED"
    QUERY_ERROR = "QUERY_ERROR"
