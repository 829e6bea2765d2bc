"""
RIFF/WebP chunk walking and EXIF JSON recovery.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator

from ...shared import ErrorCode, Result, get_logger
from .parsing_utils import extract_braced_json, loads_dict

logger = get_logger(__name__)

_RIFF_HEADER_LEN = 12
_CHUNK_HEADER_LEN = 8
EXIF_FOURCC = "EXIF"


@dataclass(frozen=True)
class WebpChunk:
    fourcc: str
    data: bytes
    offset: int


def iter_webp_chunks(data: bytes) -> Iterator[WebpChunk]:
    """
    Yield RIFF sub-chunks of a WebP buffer.

    The scan is bounded by the RIFF size field (+8) and by the physical
    buffer; payloads that run past the buffer are clipped. Odd-sized payloads
    are followed by one padding byte.
    """
    total = len(data)
    declared = int.from_bytes(data[4:8], "little") + 8
    limit = min(declared, total)
    offset = _RIFF_HEADER_LEN

    while offset < limit:
        if offset + _CHUNK_HEADER_LEN > total:
            logger.debug("WebP chunk header truncated at offset %s", offset)
            return
        fourcc = data[offset : offset + 4].decode("latin-1")
        size = int.from_bytes(data[offset + 4 : offset + 8], "little")
        start = offset + _CHUNK_HEADER_LEN
        end = min(start + size, total)
        if start + size > total:
            logger.debug("WebP chunk %r at offset %s clipped to buffer end", fourcc, offset)
        yield WebpChunk(fourcc, bytes(data[start:end]), offset)
        offset = end + (size & 1)


def read_webp_exif(data: bytes) -> Result[Dict[str, Any]]:
    """
    Recover the generator JSON from `EXIF` chunks.

    The last parseable EXIF chunk wins. No payload is a soft
    NO_VISIBLE_METADATA result; WebP has no stealth fallback.
    """
    raw: Dict[str, Any] = {}
    for chunk in iter_webp_chunks(data):
        if chunk.fourcc != EXIF_FOURCC:
            continue
        text = chunk.data.decode("utf-8", errors="replace")
        candidate = extract_braced_json(text)
        if candidate is None:
            logger.debug("EXIF chunk at offset %s has no balanced JSON object", chunk.offset)
            continue
        parsed = loads_dict(candidate)
        if parsed is None:
            logger.debug("EXIF chunk at offset %s holds unparseable JSON", chunk.offset)
            continue
        raw["Comment"] = parsed

    if raw:
        return Result.Ok(raw)
    return Result.Soft(ErrorCode.NO_VISIBLE_METADATA, "No EXIF JSON payload", data=raw)
