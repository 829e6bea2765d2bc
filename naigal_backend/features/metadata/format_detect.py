"""Container format detection from magic bytes."""
from __future__ import annotations

from ...shared import ImageFormat

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
RIFF_MAGIC = b"RIFF"
WEBP_MAGIC = b"WEBP"
_WEBP_HEADER_LEN = 12
_PREVIEW_BYTES = 12


def detect_image_format(data: bytes) -> ImageFormat:
    if data[: len(PNG_SIGNATURE)] == PNG_SIGNATURE:
        return ImageFormat.PNG
    if len(data) >= _WEBP_HEADER_LEN and data[0:4] == RIFF_MAGIC and data[8:12] == WEBP_MAGIC:
        return ImageFormat.WEBP
    return ImageFormat.UNKNOWN


def describe_leading_bytes(data: bytes) -> str:
    """Hex preview of the first bytes, used in unsupported-format messages."""
    head = bytes(data[:_PREVIEW_BYTES])
    if not head:
        return "<empty>"
    return head.hex(" ").upper()
