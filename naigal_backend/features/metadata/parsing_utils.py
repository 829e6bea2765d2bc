"""
Shared parsing utilities for metadata extraction (JSON text, inflate, coercion).
"""
import json
import math
import zlib
from typing import Any, Dict, Optional

from ...config import MAX_DECOMPRESSED_BYTES, MAX_METADATA_JSON_BYTES
from ...shared import get_logger

logger = get_logger(__name__)

# zlib wrapper or gzip wrapper, detected from the header
_AUTO_WBITS = zlib.MAX_WBITS | 32
_INFLATE_CHUNK = 81920


def safe_inflate(data: bytes, max_size: int = MAX_DECOMPRESSED_BYTES) -> Optional[bytes]:
    """
    Decompress a DEFLATE stream with a zlib or gzip wrapper, bounded by `max_size`.

    Returns None when the stream is invalid, truncated, or inflates past the cap.
    """
    if not data:
        return None
    decompressor = zlib.decompressobj(_AUTO_WBITS)
    result = bytearray()
    try:
        pending = bytes(data)
        while pending:
            chunk = decompressor.decompress(pending, _INFLATE_CHUNK)
            result.extend(chunk)
            if len(result) > max_size:
                logger.debug("Inflate aborted: output exceeds %s bytes", max_size)
                return None
            pending = decompressor.unconsumed_tail
            if decompressor.eof:
                break
        result.extend(decompressor.flush())
    except zlib.error as exc:
        logger.debug("Inflate failed: %s", exc)
        return None

    if not decompressor.eof or len(result) > max_size:
        return None
    return bytes(result)


def loads_dict(text: str) -> Optional[Dict[str, Any]]:
    """Parse JSON text, returning the object only when it is a dict."""
    if not isinstance(text, str):
        return None
    if len(text) > MAX_METADATA_JSON_BYTES:
        logger.debug("JSON text too large (%s chars), skipped", len(text))
        return None
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_braced_json(text: str) -> Optional[str]:
    """
    Return the substring from the first `{` to its matching `}`.

    Braces are counted by depth only; braces inside JSON string literals are
    not special-cased. Generator output never puts literal braces in string
    values at this level, and readers must agree with it byte for byte.
    """
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    for idx in range(start, len(text)):
        ch = text[idx]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    return None


def _finite_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def coerce_int(value: Any) -> Optional[int]:
    """Integer from an int, a float or a numeric string ("20", "20.0")."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    number = _finite_number(value)
    return int(number) if number is not None else None


def coerce_float(value: Any) -> Optional[float]:
    return _finite_number(value)


def coerce_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None
