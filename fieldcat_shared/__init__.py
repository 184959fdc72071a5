"""Shared utilities for the media field catalog."""
from .errors import sanitize_error_message
from .log import get_logger, log_structured, log_success
from .result import Result
from .time import elapsed_ms, monotonic_ms
from .types import ErrorCode

__all__ = [
    "Result",
    "ErrorCode",
    "get_logger",
    "log_success",
    "log_structured",
    "monotonic_ms",
    "elapsed_ms",
    "sanitize_error_message",
]
