from __future__ import annotations
"""Data models returned by the COS adapter."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class Visibility:
    """Abstract visibility levels understood by the adapter."""

    PUBLIC = "public"
    PRIVATE = "private"


class Outcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    TRANSIENT_ERROR = "transient_error"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a read-path operation.

    Only a successful result is truthy, so callers that just need a
    yes/no answer can test it directly. ``value`` may still be set on a
    failed result (a partial listing, for instance).
    """

    outcome: Outcome
    value: Optional[T] = None
    error: Optional[Exception] = None

    def __bool__(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @property
    def not_found(self) -> bool:
        return self.outcome is Outcome.NOT_FOUND

    @property
    def transient(self) -> bool:
        return self.outcome is Outcome.TRANSIENT_ERROR

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(Outcome.SUCCESS, value)

    @classmethod
    def missing(cls, error: Exception | None = None, value: T | None = None) -> Result[T]:
        return cls(Outcome.NOT_FOUND, value, error)

    @classmethod
    def failure(cls, error: Exception, value: T | None = None) -> Result[T]:
        return cls(Outcome.TRANSIENT_ERROR, value, error)

    def unwrap(self) -> T:
        """Return the value or raise the error that caused the failure."""
        if self.ok:
            return self.value  # type: ignore[return-value]
        if self.error is not None:
            raise self.error
        raise LookupError(self.outcome.value)


@dataclass(frozen=True)
class FileAttributes:
    """Attributes of a single object; unset fields were not requested."""

    path: str
    size: Optional[int] = None
    visibility: Optional[str] = None
    last_modified: Optional[int] = None
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class DirectoryEntry:
    """A file or directory reported by a listing."""

    type: str
    path: str
    dirname: str
    basename: str
    extension: str
    filename: str
    timestamp: Optional[int] = None
    size: int = 0

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"


@dataclass
class ListingPage:
    """Represents a single page of a listing."""

    entries: list[DirectoryEntry] = field(default_factory=list)
    truncated: bool = False
    next_marker: str = ""
