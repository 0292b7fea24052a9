from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from s3_filestore.directories import DeleteReport


class ErrorKind(str, Enum):
    """Closed classification of backend failures."""

    NOT_FOUND = "not_found"
    PRECONDITION_FAILED = "precondition_failed"
    CONFLICT = "conflict"
    INVALID_ARGUMENT = "invalid_argument"
    OTHER = "other"


class FileStoreError(Exception):
    """Base error for s3_filestore.

    Attributes:
        message: Human-readable error message.
        path: Store path the failing operation addressed (if any).
        cause: Underlying exception (if any).
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"path={self.path}")
        if self.cause is not None:
            parts.append(f"cause={self.cause}")
        return " ".join(parts)


class BackendError(FileStoreError):
    """Raised by object store clients once a backend failure has been classified."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        bucket: str | None = None,
        key: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        path = None
        if bucket:
            path = f"/{bucket}/{key or ''}"
        super().__init__(message, path=path, cause=cause)
        self.kind = kind
        self.bucket = bucket
        self.key = key

    def __str__(self) -> str:
        return f"{super().__str__()} kind={self.kind.value}"


class InvalidPathError(FileStoreError, ValueError):
    """Raised when a path is malformed or of the wrong kind for an operation."""


class PathParseError(InvalidPathError):
    """Raised when a raw path string cannot be parsed."""


class InvalidOperationError(FileStoreError):
    """Raised when an operation is not permitted on its target (e.g. deleting root)."""


class DirectoryNotEmptyError(InvalidOperationError):
    """Raised by a non-recursive delete of a directory that still holds objects."""


class StoreFileNotFoundError(FileStoreError, FileNotFoundError):
    """Raised when a file (object) does not exist."""


class DirectoryNotFoundError(FileStoreError, FileNotFoundError):
    """Raised when a directory (bucket or prefix) does not exist."""


class DirectoryDeleteError(FileStoreError):
    """Raised when one or more object deletes of a directory delete failed.

    The full per-key outcome set is available on ``report``.
    """

    def __init__(self, message: str, *, path: str, report: DeleteReport) -> None:
        failures = report.failed
        cause = failures[0].error if failures else None
        super().__init__(message, path=path, cause=cause)
        self.report = report
