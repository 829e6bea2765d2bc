"""
Route registration system.
Coordinates all route handlers and builds the aiohttp application.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from aiohttp import web

from naigal_backend.config import MAX_UPLOAD_BYTES
from naigal_backend.features.metadata import MetadataService
from naigal_backend.observability import ensure_observability
from naigal_backend.shared import get_logger

from .handlers import METADATA_SERVICE_KEY, register_metadata_routes

# --- CONFIGURATION ---
API_PREFIX = "/naigal/"

logger = get_logger(__name__)


@web.middleware
async def security_headers_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Apply strict security headers to API responses."""
    response = await handler(request)
    if not (request.path or "").startswith(API_PREFIX):
        return response

    # API responses should never be treated as a document.
    response.headers.setdefault("Content-Security-Policy", "default-src 'none'")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Cache-Control", "no-store")
    return response


def register_all_routes(routes: web.RouteTableDef | None = None) -> web.RouteTableDef:
    """
    Register all route handlers and return the RouteTableDef.
    This is the central registration point for all routes.
    """
    if routes is None:
        routes = web.RouteTableDef()

    register_metadata_routes(routes)

    logger.info("=" * 60)
    logger.info("Routes registered:")
    logger.info("  POST /naigal/metadata")
    logger.info("  POST /naigal/metadata/raw")
    logger.info("  POST /naigal/metadata/batch")
    logger.info("=" * 60)
    return routes


def create_app(service: MetadataService | None = None) -> web.Application:
    """
    Build an aiohttp application serving the metadata routes.

    Args:
        service: Shared extraction service; a default one is created if omitted
    """
    app = web.Application(client_max_size=MAX_UPLOAD_BYTES)
    app[METADATA_SERVICE_KEY] = service or MetadataService()
    ensure_observability(app)
    app.middlewares.insert(0, security_headers_middleware)
    app.add_routes(register_all_routes())
    return app
