"""Typed results returned by storage backends."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Generic, TypeVar

T = TypeVar("T")


class StorageErrorKind(Enum):
    """Coarse classification of storage failures."""

    NOT_FOUND = "not_found"
    CORRUPT = "corrupt"
    IO = "io"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class StorageError:
    """A storage failure with enough context to diagnose it."""

    kind: StorageErrorKind
    operation: str
    message: str
    path: Path | None = None

    def __str__(self) -> str:
        where = f" {str(self.path)!r}" if self.path else ""
        return f"{self.operation}{where}: {self.kind.value}: {self.message}"

    @classmethod
    def from_exception(
        cls, operation: str, exc: Exception, path: Path | None = None
    ) -> "StorageError":
        """Classify an exception raised by file or key-value I/O."""
        if isinstance(exc, FileNotFoundError):
            kind = StorageErrorKind.NOT_FOUND
        elif isinstance(exc, (ValueError, UnicodeDecodeError)):
            kind = StorageErrorKind.CORRUPT
        else:
            kind = StorageErrorKind.IO
        return cls(kind=kind, operation=operation, message=str(exc), path=path)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a backend call.

    A failure may still carry a value: failed reads hand back the empty
    document so callers that only need "some document" never branch.
    """

    value: T | None = None
    error: StorageError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: StorageError, value: T | None = None) -> "Result[T]":
        return cls(value=value, error=error)

    def unwrap_or(self, default: T) -> T:
        if self.value is None:
            return default
        return self.value
