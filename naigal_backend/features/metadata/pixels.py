"""
Pixel decoding through Pillow.

This is the blocking step of the pipeline; async callers run it on a worker
thread.
"""
from __future__ import annotations

import io
from dataclasses import dataclass

import numpy as np
from PIL import Image, UnidentifiedImageError

from ...shared import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RgbaPixels:
    """Row-major RGBA buffer, shape (height, width, 4), dtype uint8."""
    array: np.ndarray
    width: int
    height: int


def image_size(data: bytes) -> tuple[int, int] | None:
    """Read (width, height) from the header without decoding pixels."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return int(img.width), int(img.height)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.debug("Unable to read image header: %s", exc)
        return None


def decode_rgba(data: bytes) -> RgbaPixels | None:
    """
    Decode an image buffer into RGBA pixels.

    Images without an alpha channel get an opaque one from the conversion,
    which carries no payload. Returns None when Pillow cannot decode the data.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            rgba = img.convert("RGBA")
            array = np.asarray(rgba, dtype=np.uint8)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.debug("Pixel decode failed: %s", exc)
        return None
    height, width = array.shape[:2]
    return RgbaPixels(array=array, width=int(width), height=int(height))
