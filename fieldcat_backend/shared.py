"""Backend-facing alias for shared utilities.

Backend modules import from here so the shared package can move without
touching every feature module.
"""

from __future__ import annotations

import fieldcat_shared as _root_shared

Result = _root_shared.Result
ErrorCode = _root_shared.ErrorCode
get_logger = _root_shared.get_logger
log_success = _root_shared.log_success
log_structured = _root_shared.log_structured
sanitize_error_message = _root_shared.sanitize_error_message
monotonic_ms = _root_shared.monotonic_ms
elapsed_ms = _root_shared.elapsed_ms

__all__ = [
    "Result",
    "ErrorCode",
    "get_logger",
    "log_success",
    "log_structured",
    "sanitize_error_message",
    "monotonic_ms",
    "elapsed_ms",
]
