"""
Helpers for sanitizing error messages before they reach HTTP clients.
"""
from __future__ import annotations

import os
import re
from typing import Any

from .log import get_logger

logger = get_logger(__name__)
_WINDOWS_PATH_RE = re.compile(r"[A-Za-z]:\\[^\s]+")
_UNIX_PATH_RE = re.compile(r"(?<![A-Za-z0-9:/?&=#%])/(?!/)[^\s#?]+")
_MAX_MESSAGE_LEN = 200


def debug_mode() -> bool:
    return os.getenv("NAIGAL_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")


def _mask_paths(value: str) -> str:
    """Mask path-looking substrings so uploads never echo server paths."""
    cleaned = _WINDOWS_PATH_RE.sub("[path]", value)
    return _UNIX_PATH_RE.sub("[path]", cleaned)


def sanitize_error_message(exc: Any, fallback: str) -> str:
    """
    Build a safe error message for clients.

    Args:
        exc: Exception or raw value to sanitize.
        fallback: Fallback message to show when nothing meaningful remains.

    Returns:
        A string suitable for inclusion in API responses.
    """
    if not fallback:
        fallback = "An error occurred"

    if exc is None:
        return fallback

    raw = str(exc)
    if not raw:
        return fallback

    cwd = os.getcwd()
    if len(cwd) > 1:
        raw = raw.replace(cwd, "[cwd]")
    sanitized = _mask_paths(raw)
    sanitized = " ".join(sanitized.splitlines()).strip()

    if debug_mode():
        logger.debug("Sanitized error payload: %s", sanitized)

    if sanitized:
        return f"{fallback}: {sanitized[:_MAX_MESSAGE_LEN]}"
    return fallback
