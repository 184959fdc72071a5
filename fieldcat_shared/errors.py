"""
Client-facing error messages: filesystem paths (database file, data dir)
are masked before a driver error reaches an HTTP response.
"""
from __future__ import annotations

import re
from typing import Any

_MAX_DETAIL_CHARS = 200
_PATH_PATTERNS = (
    re.compile(r"[A-Za-z]:\\[^\s]+"),
    re.compile(r"(?<![A-Za-z0-9:/?&=#%])/(?!/)[^\s#?]+"),
)


def sanitize_error_message(exc: Any, fallback: str) -> str:
    """Return `fallback`, suffixed with the path-masked, single-line detail of `exc` if any."""
    fallback = fallback or "An error occurred"
    detail = "" if exc is None else str(exc)
    for pattern in _PATH_PATTERNS:
        detail = pattern.sub("[path]", detail)
    detail = " ".join(detail.split())
    if not detail:
        return fallback
    return f"{fallback}: {detail[:_MAX_DETAIL_CHARS]}"
