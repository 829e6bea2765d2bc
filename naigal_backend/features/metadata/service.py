"""
Metadata extraction service.

Runs the blocking pipeline on worker threads and isolates per-image failures
so one corrupt file never aborts a batch.
"""
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ...config import EXTRACT_CONCURRENCY, MAX_UPLOAD_BYTES
from ...shared import ErrorCode, Result, get_logger, log_structured, log_success
from .extractors import RawMetadata, extract_raw_metadata, extract_record
from .record import NormalizedRecord

logger = get_logger(__name__)

BatchItem = Union[str, os.PathLike, Tuple[str, bytes]]


@dataclass(frozen=True)
class BatchFailure:
    file_name: str
    code: str
    error: str

    def to_dict(self) -> Dict[str, str]:
        return {"fileName": self.file_name, "code": self.code, "error": self.error}


@dataclass
class BatchReport:
    records: List[NormalizedRecord] = field(default_factory=list)
    failures: List[BatchFailure] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "records": [record.to_dict() for record in self.records],
            "failures": [failure.to_dict() for failure in self.failures],
        }


def read_image_file(path: Union[str, os.PathLike], max_bytes: int = MAX_UPLOAD_BYTES) -> Result[bytes]:
    file_path = Path(path)
    if not file_path.is_file():
        return Result.Err(ErrorCode.NOT_FOUND, f"File not found: {file_path.name}")
    size = file_path.stat().st_size
    if size > max_bytes:
        return Result.Err(ErrorCode.INVALID_INPUT, f"File too large ({size} bytes, limit {max_bytes})")
    return Result.Ok(file_path.read_bytes())


class MetadataService:
    """
    Metadata extraction service.

    Stateless apart from the semaphore bounding concurrent extractions.
    """

    def __init__(self, max_concurrency: Optional[int] = None):
        """
        Initialize metadata service.

        Args:
            max_concurrency: Concurrent extractions; defaults to NAIGAL_EXTRACT_CONCURRENCY
        """
        try:
            concurrency = int(max_concurrency or EXTRACT_CONCURRENCY)
        except (TypeError, ValueError):
            concurrency = 1
        if concurrency <= 0:
            concurrency = 1
        self._extract_sem = asyncio.Semaphore(concurrency)

    async def extract(self, data: bytes, file_name: str = "") -> Result[NormalizedRecord]:
        async with self._extract_sem:
            return await asyncio.to_thread(extract_record, data, file_name)

    async def extract_raw(self, data: bytes) -> Result[RawMetadata]:
        async with self._extract_sem:
            return await asyncio.to_thread(extract_raw_metadata, data)

    async def extract_path(self, path: Union[str, os.PathLike]) -> Result[NormalizedRecord]:
        read = await asyncio.to_thread(read_image_file, path)
        if not read.ok or read.data is None:
            return Result.Err(read.code, read.error or "Failed to read file", file_name=Path(path).name)
        return await self.extract(read.data, Path(path).name)

    async def _extract_item(self, item: BatchItem) -> Tuple[str, Result[NormalizedRecord]]:
        if isinstance(item, tuple):
            file_name, data = item
            return file_name, await self.extract(data, file_name)
        return Path(item).name, await self.extract_path(item)

    async def _isolated(self, item: BatchItem) -> Tuple[str, Result[NormalizedRecord]]:
        try:
            return await self._extract_item(item)
        except Exception as exc:
            name = item[0] if isinstance(item, tuple) else Path(item).name
            logger.warning("Metadata extraction crashed for %s: %s", name, exc, exc_info=True)
            return name, Result.Err(ErrorCode.METADATA_FAILED, str(exc))

    async def extract_batch(self, items: Iterable[BatchItem]) -> BatchReport:
        """
        Extract records for many images.

        Items are paths or (file_name, bytes) pairs. Failures are collected
        per file; successful records keep input order.
        """
        outcomes = await asyncio.gather(*(self._isolated(item) for item in items))
        report = BatchReport()
        for file_name, res in outcomes:
            if res.ok and res.data is not None:
                report.records.append(res.data)
                continue
            report.failures.append(BatchFailure(file_name, res.code, res.error or "Unknown error"))

        if report.failures:
            log_structured(
                logger,
                logging.WARNING,
                "Metadata batch finished with failures",
                records=len(report.records),
                failures=[failure.to_dict() for failure in report.failures],
            )
        else:
            log_success(logger, f"Metadata batch finished: {len(report.records)} records")
        return report
