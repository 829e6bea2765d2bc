"""
Route handler modules.
"""
from .metadata import METADATA_SERVICE_KEY, register_metadata_routes

__all__ = ["METADATA_SERVICE_KEY", "register_metadata_routes"]
