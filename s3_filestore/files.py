from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import BinaryIO, TypeVar

from s3_filestore.buckets import BucketProvisioner
from s3_filestore.errors import (
    BackendError,
    DirectoryNotFoundError,
    ErrorKind,
    InvalidPathError,
    StoreFileNotFoundError,
)
from s3_filestore.io.paths import PathKind, StorePath, normalize_path
from s3_filestore.io.uri import SEPARATOR
from s3_filestore.observability import log_event
from s3_filestore.store.object_store import ObjectMetadata, ObjectStoreClient
from s3_filestore.store.streams import ObjectWriteStream

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)
WRITE_TIMEOUT = timedelta(minutes=40)


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC timestamp; naive values are taken to be UTC already."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class FileOperations:
    """Per-object operations; every path must resolve to an object key."""

    def __init__(
        self,
        client: ObjectStoreClient,
        buckets: BucketProvisioner,
        default_directory: str = SEPARATOR,
    ) -> None:
        self.client = client
        self.buckets = buckets
        self.default_directory = default_directory

    def _resolve(self, path: str) -> StorePath:
        return normalize_path(self.default_directory, path)

    def _object(self, path: str) -> StorePath:
        target = self._resolve(path)
        if target.kind is not PathKind.OBJECT:
            raise InvalidPathError(
                f"expected a file path, got a {target.kind.value} path", path=path
            )
        return target

    @staticmethod
    def _not_found(target: StorePath, exc: BackendError) -> StoreFileNotFoundError:
        return StoreFileNotFoundError("file not found", path=target.render(), cause=exc)

    def _head(self, target: StorePath) -> ObjectMetadata:
        return self.client.head_object(str(target.bucket), target.key)

    def delete_file(self, path: str) -> None:
        target = self._object(path)
        try:
            self.client.delete_object(str(target.bucket), target.key)
        except BackendError as exc:
            if exc.kind is not ErrorKind.NOT_FOUND:
                raise

    def download_to_local_file(self, path: str, local_path: str | Path) -> None:
        target = self._object(path)
        try:
            self.client.download_file(str(target.bucket), target.key, Path(local_path))
        except BackendError as exc:
            if exc.kind is ErrorKind.NOT_FOUND:
                raise self._not_found(target, exc) from exc
            raise

    def download_to_stream(self, path: str, stream: BinaryIO) -> None:
        source = self.begin_read(path)
        try:
            shutil.copyfileobj(source, stream)
        finally:
            source.close()

    def file_exists(self, path: str) -> bool:
        return self.try_get_etag(path) is not None

    def get_file_size(self, path: str) -> int:
        target = self._object(path)
        try:
            return self._head(target).content_length
        except BackendError as exc:
            if exc.kind is ErrorKind.NOT_FOUND:
                raise self._not_found(target, exc) from exc
            raise

    def get_last_modified_time(self, path: str, is_directory: bool = False) -> datetime:
        """Return the last-modified time of a file, or of a directory when ``is_directory``.

        Buckets report their creation time. A directory below a bucket reports the
        time of its marker object, or of its newest object when it has no marker.
        The root reports :data:`MIN_TIMESTAMP`.
        """

        target = self._resolve(path)
        kind = target.kind
        if kind is PathKind.ROOT:
            return MIN_TIMESTAMP

        if kind is PathKind.BUCKET:
            if not is_directory:
                raise StoreFileNotFoundError("a bucket is not a file", path=target.render())
            info = self.buckets.find(str(target.bucket))
            if info is None:
                raise DirectoryNotFoundError("directory not found", path=target.render())
            return to_utc(info.creation_date)

        if is_directory:
            return self._directory_modified(target.as_directory())
        try:
            metadata = self._head(target)
        except BackendError as exc:
            if exc.kind is ErrorKind.NOT_FOUND:
                raise self._not_found(target, exc) from exc
            raise
        return to_utc(metadata.last_modified)

    def _directory_modified(self, target: StorePath) -> datetime:
        # Directories made implicitly by uploads have no marker; use their newest listed key.
        bucket = str(target.bucket)
        try:
            return to_utc(self.client.head_object(bucket, target.marker_key).last_modified)
        except BackendError as exc:
            if exc.kind is not ErrorKind.NOT_FOUND:
                raise
            missing = exc

        try:
            page = self.client.list_objects(bucket, target.prefix)
        except BackendError as exc:
            if exc.kind is not ErrorKind.NOT_FOUND:
                raise
            missing = exc
        else:
            if page.keys:
                stamps = [
                    page.last_modified[key] for key in page.keys if key in page.last_modified
                ]
                if stamps:
                    return to_utc(max(stamps))
                return to_utc(self.client.head_object(bucket, page.keys[0]).last_modified)
        raise DirectoryNotFoundError(
            "directory not found", path=target.render(), cause=missing
        ) from missing

    def read_etag(self, path: str, etag: str) -> BinaryIO | None:
        """Open the object only if its current ETag still equals ``etag``.

        Returns None when the ETag is stale.
        """

        target = self._object(path)
        try:
            return self.client.get_object(str(target.bucket), target.key, if_match=etag)
        except BackendError as exc:
            if exc.kind is ErrorKind.PRECONDITION_FAILED:
                return None
            if exc.kind is ErrorKind.NOT_FOUND:
                raise self._not_found(target, exc) from exc
            raise

    def try_get_etag(self, path: str) -> str | None:
        target = self._object(path)
        try:
            return self._head(target).etag
        except BackendError as exc:
            if exc.kind is ErrorKind.NOT_FOUND:
                return None
            raise

    def upload_from_local_file(self, local_path: str | Path, path: str) -> None:
        target = self._object(path)
        self.buckets.ensure(str(target.bucket))
        self.client.upload_file(str(target.bucket), target.key, Path(local_path))

    def upload_from_stream(self, path: str, stream: BinaryIO) -> None:
        target = self._object(path)
        self.buckets.ensure(str(target.bucket))
        self.client.upload_stream(str(target.bucket), target.key, stream)

    def write_etag(self, path: str, writer: Callable[[ObjectWriteStream], T]) -> tuple[str, T]:
        """Run ``writer`` against a fresh write stream and return ``(etag, result)``.

        The ETag comes from the upload itself when the backend reports one;
        otherwise it is read from object metadata after the stream closed, and a
        concurrent writer of the same key may have raced in between.
        """

        target = self._object(path)
        self.buckets.ensure(str(target.bucket))
        with self.client.open_write_stream(
            str(target.bucket), target.key, timeout=WRITE_TIMEOUT
        ) as stream:
            result = writer(stream)

        etag = stream.etag
        source = "upload"
        if etag is None:
            etag = self._head(target).etag
            source = "head"
        log_event(logger, "store.write_etag", path=target.render(), etag_source=source)
        return etag, result

    def begin_read(self, path: str) -> BinaryIO:
        target = self._object(path)
        try:
            return self.client.get_object(str(target.bucket), target.key)
        except BackendError as exc:
            if exc.kind is ErrorKind.NOT_FOUND:
                raise self._not_found(target, exc) from exc
            raise

    def begin_write(self, path: str) -> ObjectWriteStream:
        target = self._object(path)
        self.buckets.ensure(str(target.bucket))
        return self.client.open_write_stream(
            str(target.bucket), target.key, timeout=WRITE_TIMEOUT
        )
