"""
Route registration.
Coordinates route handlers and builds the aiohttp application.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from aiohttp import web

from ..shared import get_logger
from .core import dispose_services, set_services
from .handlers import register_catalog_routes

API_PREFIX = "/fieldcat/"

logger = get_logger(__name__)


@web.middleware
async def security_headers_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Apply strict security headers to API responses only."""
    response = await handler(request)
    if not (request.path or "").startswith(API_PREFIX):
        return response

    # API responses should never be treated as a document.
    response.headers.setdefault("Content-Security-Policy", "default-src 'none'")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Cache-Control", "no-store")
    return response


def build_route_table() -> web.RouteTableDef:
    routes = web.RouteTableDef()
    register_catalog_routes(routes)
    return routes


async def _on_cleanup(_app: web.Application) -> None:
    await dispose_services()


def create_app(services: dict[str, Any] | None = None) -> web.Application:
    """
    Build the aiohttp application.

    When `services` is given it is installed as the container; otherwise the
    container is built lazily on the first request.
    """
    if services is not None:
        set_services(services)
    app = web.Application(middlewares=[security_headers_middleware])
    app.add_routes(build_route_table())
    app.on_cleanup.append(_on_cleanup)
    logger.info("Registered %d routes under %s", len(app.router.routes()), API_PREFIX)
    return app
