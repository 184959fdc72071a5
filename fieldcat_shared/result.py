"""
Result type returned by the catalog's adapters, repositories and services
instead of raising.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar, cast

from .types import ErrorCode

T = TypeVar("T")
U = TypeVar("U")


@dataclass
class Result(Generic[T]):
    """
    Outcome of a catalog call: `data` when `ok`, otherwise `code` + `error`.

    Extra keyword arguments land in `meta`, e.g. `retryable=True` on a
    CONFLICT or the partial `created` count of a failed processing run.
    """
    ok: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: str = ErrorCode.OK.value
    meta: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def Ok(data: T, **meta: Any) -> "Result[T]":
        return Result(ok=True, data=data, code=ErrorCode.OK.value, meta=meta)

    @staticmethod
    def Err(code: ErrorCode | str | Enum, error: str, **meta: Any) -> "Result[T]":
        code_value = code.value if isinstance(code, Enum) else code
        return Result(ok=False, error=error, code=str(code_value), meta=meta)

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        """Transform `data` of a successful result; errors pass through unchanged."""
        if self.ok:
            return Result.Ok(fn(cast(T, self.data)))
        return cast(Result[U], self)
