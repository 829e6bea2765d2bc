"""
PNG chunk walking and tEXt decoding.

Chunk layout: 4-byte big-endian length, 4-byte type, payload, 4-byte CRC.
CRCs are not verified; a chunk whose declared length runs past the buffer
ends the walk and everything read before it is kept.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List

from ...shared import ErrorCode, Result, get_logger
from .format_detect import PNG_SIGNATURE
from .parsing_utils import loads_dict

logger = get_logger(__name__)

_HEADER_LEN = 8
_CRC_LEN = 4
COMMENT_KEYWORD = "Comment"


@dataclass(frozen=True)
class PngChunk:
    type: str
    data: bytes
    offset: int


class _ChunkWalk:
    """Iterates chunks and remembers whether the walk stopped on bad bounds."""

    def __init__(self, data: bytes):
        self._data = data
        self.malformed: str | None = None

    def __iter__(self) -> Iterator[PngChunk]:
        data = self._data
        offset = len(PNG_SIGNATURE)
        total = len(data)
        while offset < total:
            if offset + _HEADER_LEN > total:
                self.malformed = f"truncated chunk header at offset {offset}"
                return
            length = int.from_bytes(data[offset : offset + 4], "big")
            chunk_type = data[offset + 4 : offset + 8].decode("latin-1")
            start = offset + _HEADER_LEN
            end = start + length
            if end + _CRC_LEN > total:
                self.malformed = f"chunk {chunk_type!r} at offset {offset} declares {length} bytes past end of buffer"
                return
            yield PngChunk(chunk_type, bytes(data[start:end]), offset)
            if chunk_type == "IEND":
                return
            offset = end + _CRC_LEN


def iter_png_chunks(data: bytes) -> Iterator[PngChunk]:
    """Yield the chunks of a PNG buffer that already passed signature detection."""
    return iter(_ChunkWalk(data))


def decode_text_chunk(payload: bytes) -> tuple[str, str] | None:
    """Split a tEXt payload into (keyword, text); None when there is no separator."""
    keyword, sep, text = payload.partition(b"\x00")
    if not sep:
        return None
    return keyword.decode("latin-1"), text.decode("latin-1")


def _parse_comment(text: str) -> Dict[str, Any]:
    parsed = loads_dict(text)
    if parsed is None:
        logger.debug("Comment chunk is not a JSON object within the size cap (%s chars)", len(text))
        return {}
    return parsed


def read_png_text(data: bytes) -> Result[Dict[str, Any]]:
    """
    Collect tEXt fields of a PNG buffer into a RawMetadata mapping.

    Returns Ok when a non-empty `Comment` object was found, otherwise a soft
    NO_VISIBLE_METADATA result carrying whatever flat fields were collected.
    """
    raw: Dict[str, Any] = {}
    walk = _ChunkWalk(data)
    seen: List[str] = []

    for chunk in walk:
        seen.append(chunk.type)
        if chunk.type != "tEXt":
            continue
        decoded = decode_text_chunk(chunk.data)
        if decoded is None:
            logger.debug("tEXt chunk at offset %s has no keyword separator", chunk.offset)
            continue
        keyword, text = decoded
        if keyword == COMMENT_KEYWORD:
            raw[COMMENT_KEYWORD] = _parse_comment(text)
        else:
            raw[keyword] = text

    meta: Dict[str, Any] = {"chunks": seen}
    if walk.malformed:
        logger.debug("PNG chunk walk stopped early: %s", walk.malformed)
        meta["malformed"] = walk.malformed

    comment = raw.get(COMMENT_KEYWORD)
    if isinstance(comment, dict) and comment:
        return Result.Ok(raw, **meta)
    return Result.Soft(ErrorCode.NO_VISIBLE_METADATA, "No visible Comment chunk", data=raw, **meta)
