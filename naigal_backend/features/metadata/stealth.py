"""
Stealth payload recovery from alpha-channel least significant bits.

Layout, inside the bit stream built from the alpha LSB of every pixel in
row-major order, packed MSB-first into bytes:

    <signature ascii> <uint32 big-endian byte length> <payload>

`*comp` signatures carry a DEFLATE stream (zlib or gzip wrapper); `*info`
signatures carry raw UTF-8. The payload is JSON.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union

import numpy as np

from ...config import MAX_STEALTH_PIXELS
from ...shared import ErrorCode, Result, get_logger, timer
from .parsing_utils import loads_dict, safe_inflate
from .pixels import decode_rgba, image_size

logger = get_logger(__name__)

_LENGTH_LEN = 4


@dataclass(frozen=True)
class StealthSignature:
    name: str
    compressed: bool

    @property
    def magic(self) -> bytes:
        return self.name.encode("ascii")


# Tried in this order; first valid payload wins.
SIGNATURES: tuple[StealthSignature, ...] = (
    StealthSignature("stealth_pngcomp", True),
    StealthSignature("stealth_pnginfo", False),
    StealthSignature("stealth_rgbcomp", True),
    StealthSignature("stealth_rgbinfo", False),
)

PixelBuffer = Union[bytes, bytearray, memoryview, np.ndarray]


def _alpha_channel(pixels: PixelBuffer, width: int, height: int) -> np.ndarray:
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size {width}x{height}")
    if isinstance(pixels, np.ndarray):
        arr = pixels
    else:
        arr = np.frombuffer(pixels, dtype=np.uint8)
    expected = width * height * 4
    if arr.size != expected:
        raise ValueError(f"RGBA buffer holds {arr.size} values, expected {expected} for {width}x{height}")
    return arr.reshape(height * width, 4)[:, 3].astype(np.uint8, copy=False)


def alpha_lsb_bytes(pixels: PixelBuffer, width: int, height: int) -> bytes:
    """
    Pack the alpha LSB stream into bytes, MSB first.

    A trailing partial byte is zero-padded on its low end.
    """
    bits = np.bitwise_and(_alpha_channel(pixels, width, height), 1)
    return np.packbits(bits, bitorder="big").tobytes()


def _decode_candidate(stream: bytes, signature: StealthSignature) -> Result[Dict[str, Any]]:
    index = stream.find(signature.magic)
    if index < 0:
        return Result.Soft(ErrorCode.STEALTH_NOT_FOUND, f"{signature.name} not present")

    offset = index + len(signature.magic)
    if offset + _LENGTH_LEN >= len(stream):
        return Result.Soft(ErrorCode.STEALTH_PAYLOAD_INVALID, f"Not enough data after {signature.name}")

    length = int.from_bytes(stream[offset : offset + _LENGTH_LEN], "big")
    if length <= 0 or length > len(stream) - offset - _LENGTH_LEN:
        return Result.Soft(ErrorCode.STEALTH_PAYLOAD_INVALID, f"Invalid payload length {length} for {signature.name}")

    start = offset + _LENGTH_LEN
    payload = stream[start : start + length]

    if signature.compressed:
        inflated = safe_inflate(payload)
        if inflated is None:
            return Result.Soft(ErrorCode.STEALTH_PAYLOAD_INVALID, f"Failed to decompress {signature.name}")
        try:
            text = inflated.decode("utf-8")
        except UnicodeDecodeError:
            return Result.Soft(ErrorCode.STEALTH_PAYLOAD_INVALID, f"Decompressed {signature.name} is not UTF-8")
    else:
        text = payload.decode("utf-8", errors="replace")

    parsed = loads_dict(text)
    if parsed is None:
        return Result.Soft(ErrorCode.STEALTH_PAYLOAD_INVALID, f"Failed to parse JSON from {signature.name}")
    return Result.Ok(parsed, signature=signature.name, length=length)


def decode_stealth(pixels: PixelBuffer, width: int, height: int) -> Result[Dict[str, Any]]:
    """
    Recover a stealth JSON payload from an RGBA buffer.

    Every signature failure is local; exhausting them is a soft
    STEALTH_NOT_FOUND result, never an error.
    """
    try:
        stream = alpha_lsb_bytes(pixels, width, height)
    except ValueError as exc:
        return Result.Err(ErrorCode.INVALID_INPUT, str(exc))

    for signature in SIGNATURES:
        res = _decode_candidate(stream, signature)
        if res.ok:
            return res
        if res.code != ErrorCode.STEALTH_NOT_FOUND.value:
            logger.debug("Stealth candidate rejected: %s", res.error)

    return Result.Soft(ErrorCode.STEALTH_NOT_FOUND, "No hidden metadata found")


def stealth_from_image_bytes(data: bytes) -> Result[Dict[str, Any]]:
    """Decode pixels with Pillow and scan them for a stealth payload."""
    size = image_size(data)
    if size is not None and size[0] * size[1] > MAX_STEALTH_PIXELS:
        logger.debug("Stealth scan skipped for %sx%s image", size[0], size[1])
        return Result.Soft(ErrorCode.STEALTH_NOT_FOUND, "Image too large for stealth scan")
    pixels = decode_rgba(data)
    if pixels is None:
        return Result.Soft(ErrorCode.STEALTH_NOT_FOUND, "Pixel data could not be decoded")
    with timer("stealth scan", logger):
        return decode_stealth(pixels.array, pixels.width, pixels.height)
