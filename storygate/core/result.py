"""
Result values returned at component boundaries.

Components that can fail in a recoverable way return a Result instead of
raising, so callers decide explicitly how to degrade.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success or failure variant of an operation outcome."""
    value: Optional[T] = None
    error: Optional[Exception] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception, message: str = "") -> "Result[T]":
        return cls(error=error, message=message or str(error))

    def unwrap(self) -> T:
        """Return the value or re-raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value

    def value_or(self, default: T) -> T:
        return self.value if self.error is None else default
