"""
Metadata extraction pipeline: bytes -> RawMetadata -> NormalizedRecord.

Only an unsupported container (or an empty buffer) is a hard failure;
every other condition degrades to a record with defaulted fields.
"""
from __future__ import annotations

from typing import Any, Dict

from ...shared import ErrorCode, ImageFormat, MetadataSource, Result, get_logger
from ..tags import derive_tags
from .format_detect import describe_leading_bytes, detect_image_format
from .normalizer import normalize_metadata
from .png_chunks import read_png_text
from .record import NormalizedRecord
from .stealth import stealth_from_image_bytes
from .webp_chunks import read_webp_exif

logger = get_logger(__name__)

RawMetadata = Dict[str, Any]


def _extract_png(data: bytes) -> Result[RawMetadata]:
    visible = read_png_text(data)
    raw: RawMetadata = dict(visible.data or {})
    meta: Dict[str, Any] = {"format": ImageFormat.PNG.value}
    if "malformed" in visible.meta:
        meta["malformed"] = visible.meta["malformed"]
        meta["warning"] = ErrorCode.MALFORMED_CONTAINER.value

    if visible.ok:
        return Result.Ok(raw, source="text_chunk", **meta)

    hidden = stealth_from_image_bytes(data)
    if hidden.ok and hidden.data is not None:
        raw["Comment"] = hidden.data
        return Result.Ok(raw, source="stealth", signature=hidden.meta.get("signature"), **meta)

    logger.debug("No PNG metadata found (%s)", hidden.error)
    raw.setdefault("Comment", {})
    return Result.Ok(raw, source="none", **meta)


def _extract_webp(data: bytes) -> Result[RawMetadata]:
    visible = read_webp_exif(data)
    raw: RawMetadata = dict(visible.data or {})
    if visible.ok:
        return Result.Ok(raw, source="exif", format=ImageFormat.WEBP.value)
    raw.setdefault("Comment", {})
    return Result.Ok(raw, source="none", format=ImageFormat.WEBP.value)


def extract_raw_metadata(data: bytes) -> Result[RawMetadata]:
    if not data:
        return Result.Err(ErrorCode.INVALID_INPUT, "Image buffer is empty")

    fmt = detect_image_format(data)
    if fmt is ImageFormat.PNG:
        return _extract_png(data)
    if fmt is ImageFormat.WEBP:
        return _extract_webp(data)
    return Result.Err(
        ErrorCode.UNSUPPORTED_FORMAT,
        f"Unsupported image format: leading bytes {describe_leading_bytes(data)} match neither PNG nor WebP",
    )


def build_record(
    raw: RawMetadata,
    file_name: str = "",
    source_format: str = "",
    metadata_source: MetadataSource = "none",
) -> NormalizedRecord:
    fields = normalize_metadata(raw)
    return NormalizedRecord(
        prompt=fields.prompt,
        negative_prompt=fields.negative_prompt,
        seed=fields.seed,
        steps=fields.steps,
        cfg_scale=fields.cfg_scale,
        sampler=fields.sampler,
        character_prompts=fields.character_prompts,
        character_ucs=fields.character_ucs,
        tags=derive_tags(fields.prompt, fields.character_prompts),
        file_name=file_name,
        source_format=source_format,
        metadata_source=metadata_source,
    )


def extract_record(data: bytes, file_name: str = "") -> Result[NormalizedRecord]:
    raw_res = extract_raw_metadata(data)
    if raw_res.is_hard_error or raw_res.data is None:
        return Result.Err(raw_res.code, raw_res.error or "Metadata extraction failed", file_name=file_name)

    record = build_record(
        raw_res.data,
        file_name=file_name,
        source_format=str(raw_res.meta.get("format", "")),
        metadata_source=str(raw_res.meta.get("source", "none")),
    )
    return Result.Ok(record, **raw_res.meta)
