from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from functools import cached_property
from pathlib import Path
from typing import BinaryIO, TypeVar

from s3_filestore.buckets import BucketProvisioner
from s3_filestore.directories import DEFAULT_DELETE_CONCURRENCY, DeleteReport, DirectoryEmulator
from s3_filestore.files import FileOperations
from s3_filestore.io import uri
from s3_filestore.io.paths import StorePath, normalize_path
from s3_filestore.retry import RetryPolicy, conflict_retry_policy
from s3_filestore.settings import S3Settings, resolve_s3_settings
from s3_filestore.store.object_store import ObjectStoreClient
from s3_filestore.store.streams import ObjectWriteStream
from s3_filestore.store.stores import Boto3S3Client

T = TypeVar("T")


@dataclass(frozen=True)
class S3FileStore:
    """File-store view over an S3-compatible object store.

    Paths are ``/bucket/key`` (or ``s3://bucket/key``); relative paths resolve
    under ``default_directory``. Instances are immutable values: rebinding the
    default directory yields a new store sharing the same client.
    """

    client: ObjectStoreClient
    default_directory: str = uri.SEPARATOR
    retry_policy: RetryPolicy = field(default_factory=conflict_retry_policy)
    max_delete_concurrency: int = DEFAULT_DELETE_CONCURRENCY

    def __post_init__(self) -> None:
        directory = normalize_path(uri.SEPARATOR, self.default_directory, as_directory=True)
        object.__setattr__(self, "default_directory", directory.render())

    @classmethod
    def create(
        cls,
        client: ObjectStoreClient,
        default_bucket: str,
        *,
        retry_policy: RetryPolicy | None = None,
        max_delete_concurrency: int = DEFAULT_DELETE_CONCURRENCY,
    ) -> S3FileStore:
        return cls(
            client=client,
            default_directory=default_bucket or uri.SEPARATOR,
            retry_policy=retry_policy or conflict_retry_policy(),
            max_delete_concurrency=max_delete_concurrency,
        )

    @classmethod
    def from_settings(
        cls, settings: S3Settings, client: ObjectStoreClient | None = None
    ) -> S3FileStore:
        return cls.create(
            client or Boto3S3Client.from_settings(settings),
            settings.default_bucket or uri.SEPARATOR,
            retry_policy=conflict_retry_policy(
                settings.bucket_retries, settings.bucket_retry_interval
            ),
            max_delete_concurrency=settings.delete_concurrency,
        )

    @classmethod
    def from_env(cls, config_path: Path | None = None) -> S3FileStore:
        return cls.from_settings(resolve_s3_settings(config_path))

    @cached_property
    def buckets(self) -> BucketProvisioner:
        return BucketProvisioner(self.client, self.retry_policy)

    @cached_property
    def directories(self) -> DirectoryEmulator:
        return DirectoryEmulator(
            self.client,
            self.buckets,
            self.default_directory,
            max_concurrency=self.max_delete_concurrency,
        )

    @cached_property
    def files(self) -> FileOperations:
        return FileOperations(self.client, self.buckets, self.default_directory)

    @property
    def name(self) -> str:
        return f"{__name__}.S3FileStore"

    @property
    def id(self) -> str:
        return f"s3:{self.client.endpoint_url or 'aws'}"

    @property
    def is_case_sensitive(self) -> bool:
        return True

    @property
    def root_directory(self) -> str:
        return uri.SEPARATOR

    def with_default_directory(self, directory: str) -> S3FileStore:
        return replace(self, default_directory=directory)

    def resolve(self, path: str, *, as_directory: bool = False) -> StorePath:
        return normalize_path(self.default_directory, path, as_directory=as_directory)

    # Path utilities

    def get_random_directory_name(self) -> str:
        return str(uuid.uuid4())

    def combine(self, *paths: str | Iterable[str]) -> str:
        segments: list[str] = []
        for item in paths:
            if isinstance(item, str):
                segments.append(item)
            else:
                segments.extend(item)
        return uri.combine(segments)

    def get_directory_name(self, path: str) -> str:
        return uri.get_directory_name(path)

    def get_file_name(self, path: str) -> str:
        return uri.get_file_name(path)

    def is_path_rooted(self, path: str) -> bool:
        return uri.is_path_rooted(path)

    # Directory operations

    def directory_exists(self, directory: str) -> bool:
        return self.directories.directory_exists(directory)

    def create_directory(self, directory: str) -> None:
        self.directories.create_directory(directory)

    def delete_directory(self, directory: str, recursive: bool = True) -> DeleteReport:
        return self.directories.delete_directory(directory, recursive)

    def enumerate_directories(self, directory: str) -> list[str]:
        return self.directories.enumerate_directories(directory)

    def enumerate_files(self, directory: str) -> list[str]:
        return self.directories.enumerate_files(directory)

    # File operations

    def delete_file(self, path: str) -> None:
        self.files.delete_file(path)

    def download_to_local_file(self, path: str, local_path: str | Path) -> None:
        self.files.download_to_local_file(path, local_path)

    def download_to_stream(self, path: str, stream: BinaryIO) -> None:
        self.files.download_to_stream(path, stream)

    def file_exists(self, path: str) -> bool:
        return self.files.file_exists(path)

    def get_file_size(self, path: str) -> int:
        return self.files.get_file_size(path)

    def get_last_modified_time(self, path: str, is_directory: bool = False) -> datetime:
        return self.files.get_last_modified_time(path, is_directory)

    def read_etag(self, path: str, etag: str) -> BinaryIO | None:
        return self.files.read_etag(path, etag)

    def try_get_etag(self, path: str) -> str | None:
        return self.files.try_get_etag(path)

    def upload_from_local_file(self, local_path: str | Path, path: str) -> None:
        self.files.upload_from_local_file(local_path, path)

    def upload_from_stream(self, path: str, stream: BinaryIO) -> None:
        self.files.upload_from_stream(path, stream)

    def write_etag(self, path: str, writer: Callable[[ObjectWriteStream], T]) -> tuple[str, T]:
        return self.files.write_etag(path, writer)

    def begin_read(self, path: str) -> BinaryIO:
        return self.files.begin_read(path)

    def begin_write(self, path: str) -> ObjectWriteStream:
        return self.files.begin_write(path)
