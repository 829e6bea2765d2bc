"""Shared utilities for the NaiGallery metadata engine."""
from .errors import sanitize_error_message
from .log import get_logger, log_structured, log_success, request_id_var
from .result import Result
from .time import ms, timer
from .types import ErrorCode, FileKind, ImageFormat, MetadataSource, classify_file

__all__ = [
    "Result",
    "get_logger",
    "log_success",
    "log_structured",
    "request_id_var",
    "ms",
    "timer",
    "FileKind",
    "MetadataSource",
    "ErrorCode",
    "ImageFormat",
    "classify_file",
    "sanitize_error_message",
]
