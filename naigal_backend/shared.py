"""Backend-facing alias for shared utilities."""

from __future__ import annotations

from naigal_shared import (
    ErrorCode,
    FileKind,
    ImageFormat,
    MetadataSource,
    Result,
    classify_file,
    get_logger,
    log_structured,
    log_success,
    ms,
    request_id_var,
    sanitize_error_message,
    timer,
)

__all__ = [
    "Result",
    "ErrorCode",
    "ImageFormat",
    "MetadataSource",
    "FileKind",
    "classify_file",
    "get_logger",
    "log_success",
    "log_structured",
    "request_id_var",
    "sanitize_error_message",
    "ms",
    "timer",
]
