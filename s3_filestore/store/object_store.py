from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import BinaryIO, Protocol

from s3_filestore.store.streams import ObjectWriteStream


@dataclass(frozen=True)
class BucketInfo:
    name: str
    creation_date: datetime


@dataclass(frozen=True)
class ObjectMetadata:
    key: str
    content_length: int
    last_modified: datetime
    etag: str


@dataclass(frozen=True)
class ObjectListing:
    """One page of a prefix listing.

    ``last_modified`` maps listed keys to their modification time where the
    backend reports it.
    """

    keys: list[str] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    next_marker: str | None = None
    last_modified: dict[str, datetime] = field(default_factory=dict)


class ObjectStoreClient(Protocol):
    """Bucket/key capability set the file store is built on.

    Implementations must raise :class:`s3_filestore.errors.BackendError` with a
    classified ``kind`` for every backend failure, so callers never inspect raw
    backend error payloads.
    """

    endpoint_url: str | None

    def list_buckets(self) -> list[BucketInfo]:
        """Return every bucket visible to the account."""

    def create_bucket(self, bucket: str) -> None:
        """Create a bucket."""

    def delete_bucket(self, bucket: str) -> None:
        """Delete an (empty) bucket."""

    def list_objects(
        self,
        bucket: str,
        prefix: str = "",
        *,
        delimiter: str | None = None,
        marker: str | None = None,
    ) -> ObjectListing:
        """Return one listing page; ``next_marker`` is None on the last page."""

    def head_object(self, bucket: str, key: str) -> ObjectMetadata:
        """Return object metadata without content."""

    def put_object(self, bucket: str, key: str, body: bytes | BinaryIO) -> str | None:
        """Write an object (overwrite) and return its ETag when the backend reports one."""

    def get_object(self, bucket: str, key: str, *, if_match: str | None = None) -> BinaryIO:
        """Return a readable stream over the object content.

        With ``if_match`` the read only succeeds while the current ETag equals it.
        """

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete a single object."""

    def upload_file(self, bucket: str, key: str, local_path: Path) -> None:
        """Upload a local file to bucket/key."""

    def upload_stream(self, bucket: str, key: str, stream: BinaryIO) -> None:
        """Upload a readable stream of unknown length (multipart when large)."""

    def download_file(self, bucket: str, key: str, local_path: Path) -> None:
        """Download bucket/key to a local file."""

    def open_write_stream(
        self, bucket: str, key: str, *, timeout: timedelta
    ) -> ObjectWriteStream:
        """Return a writable stream that uploads to bucket/key when closed."""
