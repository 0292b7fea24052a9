from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from s3_filestore.buckets import BucketProvisioner
from s3_filestore.errors import (
    BackendError,
    DirectoryDeleteError,
    DirectoryNotEmptyError,
    DirectoryNotFoundError,
    ErrorKind,
    InvalidOperationError,
)
from s3_filestore.io.paths import (
    PathKind,
    StorePath,
    is_directory_marker,
    normalize_path,
    object_path,
)
from s3_filestore.io.uri import SEPARATOR
from s3_filestore.observability import debug_event, log_event
from s3_filestore.store.object_store import ObjectListing, ObjectStoreClient

logger = logging.getLogger(__name__)

DEFAULT_DELETE_CONCURRENCY = 16


@dataclass(frozen=True)
class DeleteOutcome:
    key: str
    error: BackendError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DeleteReport:
    """Per-object result of a directory delete, in listing order."""

    path: str
    outcomes: tuple[DeleteOutcome, ...] = ()
    bucket_deleted: bool = False

    @property
    def deleted(self) -> list[str]:
        return [outcome.key for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> list[DeleteOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


class DirectoryEmulator:
    """Directory semantics over flat bucket/key listings.

    Buckets are top-level directories; below a bucket a directory is any key
    prefix ending with the separator. Empty directories are kept visible by a
    zero-byte marker object written inside the prefix.
    """

    def __init__(
        self,
        client: ObjectStoreClient,
        buckets: BucketProvisioner,
        default_directory: str = SEPARATOR,
        *,
        max_concurrency: int = DEFAULT_DELETE_CONCURRENCY,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.client = client
        self.buckets = buckets
        self.default_directory = default_directory
        self.max_concurrency = max_concurrency

    def _resolve(self, path: str) -> StorePath:
        return normalize_path(self.default_directory, path, as_directory=True)

    def _pages(
        self, bucket: str, prefix: str, *, delimiter: str | None
    ) -> Iterator[ObjectListing]:
        marker: str | None = None
        while True:
            page = self.client.list_objects(bucket, prefix, delimiter=delimiter, marker=marker)
            yield page
            if not page.next_marker:
                return
            marker = page.next_marker

    def _collect(
        self, target: StorePath, pick: Callable[[ObjectListing], list[str]]
    ) -> list[str]:
        bucket = str(target.bucket)
        results: list[str] = []
        try:
            for page in self._pages(bucket, target.prefix, delimiter=SEPARATOR):
                results.extend(object_path(bucket, item) for item in pick(page))
        except BackendError as exc:
            if exc.kind is ErrorKind.NOT_FOUND:
                raise DirectoryNotFoundError(
                    "directory not found", path=target.render(), cause=exc
                ) from exc
            raise
        return results

    def _list_all_keys(self, target: StorePath) -> list[str]:
        keys: list[str] = []
        try:
            for page in self._pages(str(target.bucket), target.prefix, delimiter=None):
                keys.extend(page.keys)
        except BackendError as exc:
            if exc.kind is not ErrorKind.NOT_FOUND:
                raise
            return []
        return keys

    def directory_exists(self, path: str) -> bool:
        target = self._resolve(path)
        kind = target.kind
        if kind is PathKind.ROOT:
            return True
        if kind is PathKind.BUCKET:
            return self.buckets.exists(str(target.bucket))

        try:
            page = self.client.list_objects(str(target.bucket), target.prefix)
        except BackendError as exc:
            if exc.kind is ErrorKind.NOT_FOUND:
                return False
            raise
        return bool(page.keys or page.common_prefixes)

    def create_directory(self, path: str) -> None:
        target = self._resolve(path)
        if target.kind is PathKind.ROOT:
            return

        bucket = str(target.bucket)
        self.buckets.ensure(bucket)
        if target.kind is PathKind.OBJECT:
            self.client.put_object(bucket, target.marker_key, b"")
        log_event(logger, "store.create_directory", path=target.render())

    def _delete_object(self, bucket: str, key: str) -> DeleteOutcome:
        try:
            self.client.delete_object(bucket, key)
        except BackendError as exc:
            if exc.kind is ErrorKind.NOT_FOUND:
                return DeleteOutcome(key)
            return DeleteOutcome(key, exc)
        except Exception as exc:
            # Unclassified client failures still belong to this key's outcome.
            error = BackendError(
                "delete_object failed", kind=ErrorKind.OTHER, bucket=bucket, key=key, cause=exc
            )
            return DeleteOutcome(key, error)
        debug_event(logger, "store.delete_object", bucket=bucket, key=key)
        return DeleteOutcome(key)

    def _delete_all(self, bucket: str, keys: list[str]) -> tuple[DeleteOutcome, ...]:
        if not keys:
            return ()
        by_key: dict[str, DeleteOutcome] = {}
        workers = min(self.max_concurrency, len(keys))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self._delete_object, bucket, key): key for key in keys}
            for future in as_completed(futures):
                by_key[futures[future]] = future.result()
        return tuple(by_key[key] for key in keys)

    def delete_directory(self, path: str, recursive: bool = True) -> DeleteReport:
        """Delete every object below ``path``; bucket paths also drop the bucket.

        Raises:
            InvalidOperationError: If ``path`` is the root.
            DirectoryNotEmptyError: If ``recursive`` is False and the directory has content.
            DirectoryDeleteError: If any object delete failed; ``report`` has every outcome.
        """

        target = self._resolve(path)
        if target.kind is PathKind.ROOT:
            raise InvalidOperationError("the root directory cannot be deleted", path=path)

        bucket = str(target.bucket)
        keys = self._list_all_keys(target)
        if not recursive:
            own = {target.prefix, target.marker_key} if target.kind is PathKind.OBJECT else set()
            if any(key not in own for key in keys):
                raise DirectoryNotEmptyError("directory is not empty", path=target.render())

        report = DeleteReport(path=target.render(), outcomes=self._delete_all(bucket, keys))
        if not report.ok:
            log_event(
                logger,
                "store.delete_directory",
                path=report.path,
                stage="failed",
                deleted=len(report.deleted),
                failed=len(report.failed),
            )
            raise DirectoryDeleteError(
                f"failed to delete {len(report.failed)} of {len(keys)} objects",
                path=report.path,
                report=report,
            )

        if target.kind is PathKind.BUCKET:
            try:
                self.client.delete_bucket(bucket)
            except BackendError as exc:
                if exc.kind is not ErrorKind.NOT_FOUND:
                    raise
            else:
                report = DeleteReport(
                    path=report.path, outcomes=report.outcomes, bucket_deleted=True
                )

        log_event(
            logger,
            "store.delete_directory",
            path=report.path,
            stage="done",
            deleted=len(report.deleted),
            bucket_deleted=report.bucket_deleted,
        )
        return report

    def enumerate_directories(self, path: str) -> list[str]:
        target = self._resolve(path)
        if target.kind is PathKind.ROOT:
            return [f"/{info.name}/" for info in self.client.list_buckets()]
        return self._collect(target, lambda page: page.common_prefixes)

    def enumerate_files(self, path: str) -> list[str]:
        target = self._resolve(path)
        if target.kind is PathKind.ROOT:
            return []

        def files(page: ObjectListing) -> list[str]:
            return [
                key
                for key in page.keys
                if key and not key.endswith(SEPARATOR) and not is_directory_marker(key)
            ]

        return self._collect(target, files)
