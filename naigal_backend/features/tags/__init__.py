"""Tag derivation feature."""

from .derive import derive_tags, split_tags

__all__ = ["derive_tags", "split_tags"]
