"""
Response utilities for route handlers.
"""

import math

from aiohttp import web

from ...shared import Result, sanitize_error_message


def safe_error_message(exc: Exception, generic_message: str) -> str:
    """
    Return a safe message for clients (filesystem paths masked).
    """
    return sanitize_error_message(exc, generic_message)


def _json_response(result: Result, status: int | None = None):
    """
    Convert Result to JSON response.

    Business and validation errors use HTTP 200 with `{ok: false, ...}`; an
    explicit status is reserved for unhandled server failures.
    """
    if status is None:
        status = 200

    payload = _sanitize_json_payload(
        {
            "ok": result.ok,
            "data": result.data,
            "error": result.error,
            "code": result.code,
            "meta": result.meta,
        }
    )
    return web.json_response(payload, status=status)


def _sanitize_json_payload(value):
    """
    Normalize payload values so they are always valid strict JSON.
    - Converts NaN/Infinity floats to None.
    - Recurses through dict/list/tuple/set containers.
    """
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _sanitize_json_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize_json_payload(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(_sanitize_json_payload(v) for v in value)
    return value
