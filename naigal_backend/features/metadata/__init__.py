"""Metadata extraction feature."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .service import MetadataService

__all__ = ["MetadataService", "extract_raw_metadata", "extract_record", "build_record", "NormalizedRecord"]


def __getattr__(name: str):
    if name == "MetadataService":
        from .service import MetadataService as _MetadataService

        return _MetadataService
    if name == "NormalizedRecord":
        from .record import NormalizedRecord as _NormalizedRecord

        return _NormalizedRecord
    if name in ("extract_raw_metadata", "extract_record", "build_record"):
        from .extractors import build_record, extract_raw_metadata, extract_record

        mapping = {
            "extract_raw_metadata": extract_raw_metadata,
            "extract_record": extract_record,
            "build_record": build_record,
        }
        return mapping[name]
    raise AttributeError(name)
