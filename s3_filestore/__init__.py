"""Stable public imports for `s3_filestore`.

Prefer importing from these symbols when wiring the store into applications.
Lower-level utilities should be imported from their submodules explicitly.
"""

from s3_filestore.directories import DeleteOutcome, DeleteReport, DirectoryEmulator
from s3_filestore.errors import (
    BackendError,
    DirectoryDeleteError,
    DirectoryNotEmptyError,
    DirectoryNotFoundError,
    ErrorKind,
    FileStoreError,
    InvalidOperationError,
    InvalidPathError,
    PathParseError,
    StoreFileNotFoundError,
)
from s3_filestore.filestore import S3FileStore
from s3_filestore.files import FileOperations
from s3_filestore.io.paths import PathKind, StorePath, normalize_path, parse_path
from s3_filestore.retry import RetryPolicy
from s3_filestore.settings import S3Settings, resolve_s3_settings
from s3_filestore.store import Boto3S3Client, ObjectStoreClient, ObjectWriteStream

__all__ = [
    "BackendError",
    "Boto3S3Client",
    "DeleteOutcome",
    "DeleteReport",
    "DirectoryDeleteError",
    "DirectoryEmulator",
    "DirectoryNotEmptyError",
    "DirectoryNotFoundError",
    "ErrorKind",
    "FileOperations",
    "FileStoreError",
    "InvalidOperationError",
    "InvalidPathError",
    "ObjectStoreClient",
    "ObjectWriteStream",
    "PathKind",
    "PathParseError",
    "RetryPolicy",
    "S3FileStore",
    "S3Settings",
    "StoreFileNotFoundError",
    "StorePath",
    "normalize_path",
    "parse_path",
    "resolve_s3_settings",
]
