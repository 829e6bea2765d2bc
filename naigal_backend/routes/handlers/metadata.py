"""
Metadata extraction endpoints.
"""
from __future__ import annotations

from aiohttp import web

from naigal_backend.features.metadata import MetadataService
from naigal_backend.shared import ErrorCode, Result, get_logger
from ..core import _json_response, read_uploaded_images, safe_error_message

logger = get_logger(__name__)

METADATA_SERVICE_KEY: web.AppKey[MetadataService] = web.AppKey("naigal_metadata_service", MetadataService)


def _get_service(request: web.Request) -> MetadataService:
    service = request.app.get(METADATA_SERVICE_KEY)
    if service is None:
        # Apps built without create_app(): fall back to a per-request service.
        return MetadataService()
    return service


def register_metadata_routes(routes: web.RouteTableDef) -> None:
    """Register image metadata extraction routes."""

    @routes.post("/naigal/metadata")
    async def extract_metadata(request: web.Request) -> web.Response:
        """
        Extract a normalized record from one uploaded image.

        Body: multipart field `image`, or the raw image bytes with `?name=`.
        """
        uploads = await read_uploaded_images(request)
        if not uploads.ok or not uploads.data:
            return _json_response(uploads)
        upload = uploads.data[0]

        try:
            result = await _get_service(request).extract(upload.data, upload.file_name)
        except Exception as exc:
            logger.warning("Metadata extraction crashed for %s: %s", upload.file_name, exc, exc_info=True)
            return _json_response(
                Result.Err(ErrorCode.METADATA_FAILED, safe_error_message(exc, "Metadata extraction failed"))
            )

        if not result.ok or result.data is None:
            return _json_response(result)
        return _json_response(Result.Ok(result.data.to_dict(), **result.meta))

    @routes.post("/naigal/metadata/raw")
    async def extract_raw_metadata(request: web.Request) -> web.Response:
        """Return the unnormalized metadata dictionary of one uploaded image."""
        uploads = await read_uploaded_images(request)
        if not uploads.ok or not uploads.data:
            return _json_response(uploads)
        upload = uploads.data[0]

        try:
            result = await _get_service(request).extract_raw(upload.data)
        except Exception as exc:
            logger.warning("Raw metadata extraction crashed for %s: %s", upload.file_name, exc, exc_info=True)
            return _json_response(
                Result.Err(ErrorCode.METADATA_FAILED, safe_error_message(exc, "Metadata extraction failed"))
            )
        if result.ok:
            result.meta["file_name"] = upload.file_name
        return _json_response(result)

    @routes.post("/naigal/metadata/batch")
    async def extract_metadata_batch(request: web.Request) -> web.Response:
        """
        Extract records from every `image` field of a multipart body.

        Per-file failures are reported alongside the successful records.
        """
        uploads = await read_uploaded_images(request, multiple=True)
        if not uploads.ok or not uploads.data:
            return _json_response(uploads)

        report = await _get_service(request).extract_batch(
            [(upload.file_name, upload.data) for upload in uploads.data]
        )
        return _json_response(
            Result.Ok(report.to_dict(), records=len(report.records), failures=len(report.failures))
        )
