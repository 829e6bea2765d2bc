"""
Core utilities for route handlers.
"""
from .response import _json_response, safe_error_message
from .uploads import UploadedImage, read_uploaded_images

__all__ = [
    "_json_response",
    "safe_error_message",
    "UploadedImage",
    "read_uploaded_images",
]
