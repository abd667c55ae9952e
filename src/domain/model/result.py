"""Explicit success/failure value returned by services."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from domain.model.errors import DomainError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a service call.

    Exactly one of ``value``/``error`` is meaningful: ``ok`` tells which.
    ``value`` may legitimately be falsy (``False``, empty list).
    """
    value: T | None = None
    error: DomainError | None = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DomainError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value
