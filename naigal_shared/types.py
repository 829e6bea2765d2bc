"""
Shared types, enums, and constants.
"""
import os
from enum import Enum
from typing import Final, Literal

# File type classifications
FileKind = Literal["image", "unknown"]

# Where the Comment payload of a record came from
MetadataSource = Literal["text_chunk", "exif", "stealth", "none"]

# Error codes
class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""
    OK = "OK"

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"

    # Container / format
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    MALFORMED_CONTAINER = "MALFORMED_CONTAINER"

    # Soft conditions (fallback-worthy, never fatal for an image)
    NO_VISIBLE_METADATA = "NO_VISIBLE_METADATA"
    STEALTH_NOT_FOUND = "STEALTH_NOT_FOUND"
    STEALTH_PAYLOAD_INVALID = "STEALTH_PAYLOAD_INVALID"

    # Operation errors
    METADATA_FAILED = "METADATA_FAILED"


class ImageFormat(str, Enum):
    """Container formats recognized from magic bytes."""
    PNG = "png"
    WEBP = "webp"
    UNKNOWN = "unknown"


# File extensions by type
EXTENSIONS: Final[dict[FileKind, set[str]]] = {
    "image": {".png", ".webp"},
    "unknown": set(),
}

def classify_file(filename: str) -> FileKind:
    """
    Classify file by extension.

    Args:
        filename: File name or path

    Returns:
        File kind (image, unknown)
    """
    ext = os.path.splitext(filename)[1].lower()

    for kind, exts in EXTENSIONS.items():
        if ext in exts:
            return kind

    return "unknown"
