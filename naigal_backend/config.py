"""
Configuration for the NaiGallery metadata engine.

Values are read from the environment once, at import time.
"""
import logging
import os

logger = logging.getLogger(__name__)

_MIB = 1024 * 1024


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _env_bool(default: bool, *names: str) -> bool:
    raw = _env_raw(*names)
    if raw is None:
        return default
    normalized = raw.lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    logger.warning("Invalid boolean for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
    return default


# Inflate cap for compressed stealth payloads
MAX_DECOMPRESSED_BYTES = _env_int(50 * _MIB, "NAIGAL_MAX_DECOMPRESSED_BYTES", min_value=1024)

# Upper bound on JSON text handed to json.loads
MAX_METADATA_JSON_BYTES = _env_int(10 * _MIB, "NAIGAL_MAX_METADATA_JSON_BYTES", min_value=1024)

# Images above this pixel count are not scanned for stealth payloads
MAX_STEALTH_PIXELS = _env_int(64_000_000, "NAIGAL_MAX_STEALTH_PIXELS", min_value=1)

# Read cap for files and uploads
MAX_UPLOAD_BYTES = _env_int(64 * _MIB, "NAIGAL_MAX_UPLOAD_BYTES", min_value=1024)

# Concurrent extractions per MetadataService
EXTRACT_CONCURRENCY = _env_int(4, "NAIGAL_EXTRACT_CONCURRENCY", min_value=1, max_value=64)

DEBUG = _env_bool(False, "NAIGAL_DEBUG")
