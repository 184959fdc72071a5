"""
Field catalog endpoints.
"""
from aiohttp import web

from ...features.catalog import CatalogSyncError, SyncCommand
from ...shared import ErrorCode, Result, get_logger
from ...utils import parse_int
from ..core import _json_response, _read_json, _require_services, safe_error_message

logger = get_logger(__name__)

_SYNC_BODY_KEYS = ("batch_size", "track_conflicts")


def _entries_payload(entries) -> list[dict]:
    return [e.to_dict() for e in entries or []]


def register_catalog_routes(routes: web.RouteTableDef) -> None:
    @routes.get("/fieldcat/fields")
    async def list_fields(request):
        """
        Paginated field listing.

        Query params: page, per_page, kind, q (case-insensitive name substring).
        """
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        query = svc["catalog_query"]
        page = parse_int(request.query.get("page", "1"), 1)
        per_page = parse_int(request.query.get("per_page", str(query.page_size_default)), query.page_size_default)
        kind = request.query.get("kind") or None
        name_contains = request.query.get("q") or None

        try:
            result = await query.get_paginated(page=page, per_page=per_page, kind=kind, name_contains=name_contains)
        except Exception as exc:
            logger.error("Field listing failed: %s", exc, exc_info=True)
            return _json_response(Result.Err(ErrorCode.QUERY_ERROR, safe_error_message(exc, "Field listing failed")))
        return _json_response(result.map(lambda p: p.to_dict()))

    @routes.get("/fieldcat/fields/all")
    async def list_all_fields(request):
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        try:
            result = await svc["catalog_query"].list_all()
        except Exception as exc:
            logger.error("Field listing failed: %s", exc, exc_info=True)
            return _json_response(Result.Err(ErrorCode.QUERY_ERROR, safe_error_message(exc, "Field listing failed")))
        if not result.ok:
            return _json_response(result)
        entries = _entries_payload(result.data)
        return _json_response(Result.Ok(entries, total=len(entries)))

    @routes.post("/fieldcat/fields/sync")
    async def sync_fields(request):
        """
        Rebuild the whole catalog from the media collection.

        Body (optional): {"batch_size": int, "track_conflicts": bool}
        """
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        body_res = await _read_json(request)
        if not body_res.ok:
            return _json_response(body_res)
        body = body_res.data or {}
        unknown = sorted(k for k in body if k not in _SYNC_BODY_KEYS)
        if unknown:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, f"Unknown fields: {', '.join(unknown)}"))

        command = SyncCommand(batch_size=body.get("batch_size"), track_conflicts=body.get("track_conflicts"))
        try:
            outcome = await svc["catalog_sync"].synchronize(command)
        except CatalogSyncError as exc:
            return _json_response(Result.Err(exc.code, exc.message))
        except Exception as exc:
            logger.error("Catalog synchronization failed: %s", exc, exc_info=True)
            return _json_response(Result.Err(ErrorCode.SYNC_FAILED, safe_error_message(exc, "Synchronization failed")))
        return _json_response(Result.Ok(outcome.to_dict()))

    @routes.get("/fieldcat/metrics")
    async def get_metrics(request):
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        return _json_response(Result.Ok(svc["catalog_metrics"].summary()))
