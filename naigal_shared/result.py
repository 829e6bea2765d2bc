"""
Result pattern for error handling without exceptions.
Readers and services return Result[T]; soft results mark fallback-worthy
conditions so callers can branch without exception-style control flow.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar, cast

from .types import ErrorCode

T = TypeVar("T")
U = TypeVar("U")


def _code_value(code: ErrorCode | str | Enum) -> str:
    try:
        return str(code.value if isinstance(code, Enum) else code)
    except Exception:
        return str(code)


@dataclass
class Result(Generic[T]):
    """
    Result pattern for safe error handling.

    Usage:
        def read_text(data: bytes) -> Result[dict]:
            if not data:
                return Result.Err("INVALID_INPUT", "Empty buffer")
            if not found:
                return Result.Soft("NO_VISIBLE_METADATA", "No Comment chunk", data={})
            return Result.Ok({"Comment": {...}})
    """
    ok: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: str = "OK"  # OK, UNSUPPORTED_FORMAT, NO_VISIBLE_METADATA, STEALTH_NOT_FOUND, etc.
    meta: dict[str, Any] = field(default_factory=dict)
    soft: bool = False

    @staticmethod
    def Ok(data: T, **meta: Any) -> "Result[T]":
        """Create a successful result with data and optional metadata."""
        return Result(ok=True, data=data, code="OK", meta=meta)

    @staticmethod
    def Err(code: ErrorCode | str | Enum, error: str, **meta: Any) -> "Result[T]":
        """Create a hard error result with code, message, and optional metadata."""
        return Result(ok=False, error=error, code=_code_value(code), meta=meta)

    @staticmethod
    def Soft(
        code: ErrorCode | str | Enum,
        error: str,
        data: Optional[T] = None,
        **meta: Any,
    ) -> "Result[T]":
        """
        Create a soft failure: not ok, but not an error either.

        `data` may carry whatever partial value was collected before the
        condition was detected.
        """
        return Result(ok=False, data=data, error=error, code=_code_value(code), meta=meta, soft=True)

    @property
    def is_hard_error(self) -> bool:
        return not self.ok and not self.soft

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        """Map the data if ok, otherwise return self."""
        if self.ok and self.data is not None:
            return Result.Ok(fn(self.data), **self.meta)
        return cast(Result[U], self)

    def unwrap(self) -> T:
        """Get data or raise ValueError if not ok."""
        if self.ok and self.data is not None:
            return self.data
        raise ValueError(f"[{self.code}] {self.error}")

    def unwrap_or(self, default: T) -> T:
        """Get data or return default if not ok."""
        return self.data if (self.ok and self.data is not None) else default
