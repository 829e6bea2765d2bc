"""
Request-id correlation and timing for aiohttp routes.

Every request gets an `X-Request-ID` (echoed from the client or freshly
generated) which is bound to `request_id_var` so log lines emitted while
handling it carry the id.
"""

from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from aiohttp import web

from .shared import get_logger, request_id_var
from .config import _env_bool

logger = get_logger(__name__)

_APPKEY_OBS_INSTALLED = web.AppKey("naigal_observability_installed", bool)
_DEFAULT_SLOW_MS = 750.0


def _get_request_id(request: web.Request) -> str:
    rid = (request.headers.get("X-Request-ID") or "").strip()
    return rid or uuid4().hex


def _attach_request_id_header(response: Any, rid: str) -> None:
    try:
        response.headers["X-Request-ID"] = rid
    except (AttributeError, TypeError):
        return


def _emit_request_log(request: web.Request, status: int | None, duration_ms: float, error: str | None) -> None:
    fields = {
        "method": request.method,
        "path": request.path,
        "status": status,
        "duration_ms": round(duration_ms, 2),
    }
    if error:
        fields["error"] = error
    if status is not None and status >= 500:
        logger.error("Request handled %s", fields)
    elif status is not None and status >= 400:
        logger.warning("Request handled %s", fields)
    elif duration_ms >= _DEFAULT_SLOW_MS:
        logger.info("Slow request %s", fields)
    else:
        logger.debug("Request handled %s", fields)


@web.middleware
async def request_context_middleware(request: web.Request, handler):
    """Add request-id correlation and request timing."""
    if _env_bool(False, "NAIGAL_OBS_DISABLE"):
        return await handler(request)

    rid = _get_request_id(request)
    request["naigal_request_id"] = rid
    token = request_id_var.set(rid)
    start = time.perf_counter()
    status: int | None = None
    error: str | None = None
    try:
        response = await handler(request)
        status = int(getattr(response, "status", 200) or 200)
        _attach_request_id_header(response, rid)
        return response
    except web.HTTPException as exc:
        status = exc.status
        error = exc.reason
        exc.headers["X-Request-ID"] = rid
        raise
    except Exception as exc:
        status = 500
        error = f"{exc.__class__.__name__}: {exc}"
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000.0
        request_id_var.reset(token)
        _emit_request_log(request, status, duration_ms, error)


def ensure_observability(app: web.Application) -> None:
    """
    Install middleware once.
    """
    if app.get(_APPKEY_OBS_INSTALLED):
        return
    app[_APPKEY_OBS_INSTALLED] = True
    app.middlewares.append(request_context_middleware)
