"""
Upload readers for image endpoints.

Accepts either multipart form data (`image` fields) or a raw request body
with the file name in the `name` query parameter.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from aiohttp import web

from naigal_backend.config import MAX_UPLOAD_BYTES
from naigal_backend.shared import ErrorCode, Result, sanitize_error_message

IMAGE_FIELD = "image"
_READ_CHUNK = 64 * 1024


@dataclass(frozen=True)
class UploadedImage:
    file_name: str
    data: bytes


class _UploadTooLarge(Exception):
    pass


async def _read_limited(read_chunk: Any, max_bytes: int) -> bytes:
    buf = bytearray()
    while True:
        chunk = await read_chunk(_READ_CHUNK)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise _UploadTooLarge()
    return bytes(buf)


async def _read_multipart(request: web.Request, max_bytes: int, multiple: bool) -> list[UploadedImage]:
    reader = await request.multipart()
    images: list[UploadedImage] = []
    while True:
        field: Any = await reader.next()
        if field is None:
            break
        if str(getattr(field, "name", "") or "") != IMAGE_FIELD:
            continue
        file_name = str(getattr(field, "filename", "") or f"upload-{len(images) + 1}")
        data = await _read_limited(field.read_chunk, max_bytes)
        images.append(UploadedImage(file_name, data))
        if not multiple:
            break
    return images


async def read_uploaded_images(
    request: web.Request,
    *,
    multiple: bool = False,
    max_bytes: int | None = None,
) -> Result[list[UploadedImage]]:
    """
    Read uploaded images from a request.

    Args:
        request: aiohttp request
        multiple: Collect every `image` field instead of only the first
        max_bytes: Per-file cap; defaults to NAIGAL_MAX_UPLOAD_BYTES
    """
    if max_bytes is None:
        max_bytes = MAX_UPLOAD_BYTES
    try:
        if request.content_type.startswith("multipart/"):
            images = await _read_multipart(request, max_bytes, multiple)
        else:
            data = await _read_limited(request.content.read, max_bytes)
            images = [UploadedImage(request.query.get("name", "upload"), data)] if data else []
    except _UploadTooLarge:
        return Result.Err(ErrorCode.INVALID_INPUT, f"Upload exceeds {max_bytes} bytes")
    except (ValueError, AssertionError) as exc:
        return Result.Err(ErrorCode.INVALID_INPUT, sanitize_error_message(exc, "Malformed upload"))

    if not images:
        return Result.Err(ErrorCode.INVALID_INPUT, f"Expected '{IMAGE_FIELD}' field or a request body")
    return Result.Ok(images)
