from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO

import boto3
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from s3_filestore.errors import BackendError, ErrorKind
from s3_filestore.store.object_store import (
    BucketInfo,
    ObjectListing,
    ObjectMetadata,
    ObjectStoreClient,
)
from s3_filestore.store.streams import ObjectWriteStream

if TYPE_CHECKING:
    from s3_filestore.settings import S3Settings

logger = logging.getLogger(__name__)

MULTIPART_THRESHOLD = 64 * 1024 * 1024

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NoSuchBucket", "NotFound"})
_PRECONDITION_CODES = frozenset({"412", "PreconditionFailed"})
_CONFLICT_CODES = frozenset(
    {
        "409",
        "BucketAlreadyExists",
        "BucketAlreadyOwnedByYou",
        "OperationAborted",
        "ConditionalRequestConflict",
    }
)
_INVALID_ARGUMENT_CODES = frozenset(
    {"400", "InvalidArgument", "InvalidBucketName", "KeyTooLongError", "InvalidRequest"}
)


def error_code(exc: BaseException) -> str:
    response = getattr(exc, "response", None) or {}
    error = response.get("Error") or {}
    code = str(error.get("Code") or "")
    if code:
        return code
    metadata = response.get("ResponseMetadata") or {}
    status = metadata.get("HTTPStatusCode")
    return str(status) if status else ""


def classify_error(exc: BaseException) -> ErrorKind:
    """Map a botocore/boto3 failure onto :class:`ErrorKind`."""

    if isinstance(exc, S3UploadFailedError):
        text = str(exc)
        if "NoSuchBucket" in text:
            return ErrorKind.NOT_FOUND
        return ErrorKind.OTHER

    code = error_code(exc)
    if code in _NOT_FOUND_CODES:
        return ErrorKind.NOT_FOUND
    if code in _PRECONDITION_CODES:
        return ErrorKind.PRECONDITION_FAILED
    if code in _CONFLICT_CODES:
        return ErrorKind.CONFLICT
    if code in _INVALID_ARGUMENT_CODES:
        return ErrorKind.INVALID_ARGUMENT
    return ErrorKind.OTHER


@contextmanager
def _translate_errors(
    operation: str, bucket: str | None = None, key: str | None = None
) -> Iterator[None]:
    try:
        yield
    except (ClientError, S3UploadFailedError) as exc:
        kind = classify_error(exc)
        raise BackendError(
            f"{operation} failed", kind=kind, bucket=bucket, key=key, cause=exc
        ) from exc
    except BotoCoreError as exc:
        # Transport failures (connection, timeout) carry no S3 error code.
        raise BackendError(
            f"{operation} failed", kind=ErrorKind.OTHER, bucket=bucket, key=key, cause=exc
        ) from exc


def _strip_etag(value: object) -> str | None:
    if not value:
        return None
    return str(value).strip('"')


def _quote_etag(value: str) -> str:
    if value.startswith('"') or value.startswith("W/"):
        return value
    return f'"{value}"'


def _stream_size(body: BinaryIO) -> int:
    current = body.tell()
    body.seek(0, os.SEEK_END)
    size = body.tell() - current
    body.seek(current)
    return size


class Boto3S3Client(ObjectStoreClient):
    """S3/MinIO backend using boto3."""

    def __init__(
        self,
        *,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str = "us-east-1",
        use_ssl: bool | None = None,
        url_style: str = "path",
        session_token: str | None = None,
        client_kwargs: dict[str, Any] | None = None,
        client: Any | None = None,
        multipart_threshold: int = MULTIPART_THRESHOLD,
    ) -> None:
        self.endpoint_url = endpoint_url
        self.region = region
        self.multipart_threshold = multipart_threshold
        self._transfer_config = TransferConfig(multipart_threshold=multipart_threshold)

        if client is not None:
            self._client = client
            return

        if use_ssl is None:
            use_ssl = bool(endpoint_url and endpoint_url.startswith("https://"))

        config = Config(s3={"addressing_style": url_style})
        kwargs: dict[str, Any] = dict(client_kwargs or {})
        kwargs.update(
            dict(
                service_name="s3",
                endpoint_url=endpoint_url,
                region_name=region,
                use_ssl=use_ssl,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                aws_session_token=session_token,
                config=config,
            )
        )
        self._client = boto3.client(**kwargs)
        logger.debug("Boto3S3Client initialized endpoint=%s region=%s", endpoint_url, region)

    @classmethod
    def from_settings(cls, settings: S3Settings) -> Boto3S3Client:
        return cls(
            endpoint_url=settings.endpoint_url,
            access_key=settings.access_key,
            secret_key=settings.secret_key,
            region=settings.region,
            use_ssl=settings.use_ssl,
            url_style=settings.url_style,
            session_token=settings.session_token,
        )

    def list_buckets(self) -> list[BucketInfo]:
        with _translate_errors("list_buckets"):
            response = self._client.list_buckets()
        return [
            BucketInfo(name=item["Name"], creation_date=item["CreationDate"])
            for item in response.get("Buckets", []) or []
        ]

    def create_bucket(self, bucket: str) -> None:
        kwargs: dict[str, Any] = {"Bucket": bucket}
        if self.region and self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        with _translate_errors("create_bucket", bucket):
            self._client.create_bucket(**kwargs)

    def delete_bucket(self, bucket: str) -> None:
        with _translate_errors("delete_bucket", bucket):
            self._client.delete_bucket(Bucket=bucket)

    def list_objects(
        self,
        bucket: str,
        prefix: str = "",
        *,
        delimiter: str | None = None,
        marker: str | None = None,
    ) -> ObjectListing:
        kwargs: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if delimiter:
            kwargs["Delimiter"] = delimiter
        if marker:
            kwargs["ContinuationToken"] = marker
        with _translate_errors("list_objects", bucket, prefix):
            response = self._client.list_objects_v2(**kwargs)

        contents = [obj for obj in response.get("Contents", []) or [] if obj.get("Key")]
        keys = [obj["Key"] for obj in contents]
        modified = {obj["Key"]: obj["LastModified"] for obj in contents if obj.get("LastModified")}
        prefixes = [
            item["Prefix"] for item in response.get("CommonPrefixes", []) or [] if item.get("Prefix")
        ]
        next_marker = response.get("NextContinuationToken") if response.get("IsTruncated") else None
        return ObjectListing(
            keys=keys, common_prefixes=prefixes, next_marker=next_marker, last_modified=modified
        )

    def head_object(self, bucket: str, key: str) -> ObjectMetadata:
        with _translate_errors("head_object", bucket, key):
            response = self._client.head_object(Bucket=bucket, Key=key)
        return ObjectMetadata(
            key=key,
            content_length=int(response.get("ContentLength") or 0),
            last_modified=response["LastModified"],
            etag=_strip_etag(response.get("ETag")) or "",
        )

    def put_object(self, bucket: str, key: str, body: bytes | BinaryIO) -> str | None:
        with _translate_errors("put_object", bucket, key):
            response = self._client.put_object(Bucket=bucket, Key=key, Body=body)
        return _strip_etag(response.get("ETag"))

    def get_object(self, bucket: str, key: str, *, if_match: str | None = None) -> BinaryIO:
        kwargs: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if if_match is not None:
            kwargs["IfMatch"] = _quote_etag(if_match)
        with _translate_errors("get_object", bucket, key):
            response = self._client.get_object(**kwargs)
        return response["Body"]

    def delete_object(self, bucket: str, key: str) -> None:
        with _translate_errors("delete_object", bucket, key):
            self._client.delete_object(Bucket=bucket, Key=key)

    def upload_file(self, bucket: str, key: str, local_path: Path) -> None:
        with _translate_errors("upload_file", bucket, key):
            self._client.upload_file(str(local_path), bucket, key, Config=self._transfer_config)

    def upload_stream(self, bucket: str, key: str, stream: BinaryIO) -> None:
        with _translate_errors("upload_stream", bucket, key):
            self._client.upload_fileobj(stream, bucket, key, Config=self._transfer_config)

    def download_file(self, bucket: str, key: str, local_path: Path) -> None:
        with _translate_errors("download_file", bucket, key):
            self._client.download_file(bucket, key, str(local_path))

    def _upload_spooled(self, bucket: str, key: str, body: BinaryIO) -> str | None:
        if _stream_size(body) <= self.multipart_threshold:
            return self.put_object(bucket, key, body)
        # Multipart uploads do not hand back a usable ETag here.
        with _translate_errors("upload_fileobj", bucket, key):
            self._client.upload_fileobj(body, bucket, key, Config=self._transfer_config)
        return None

    def open_write_stream(
        self, bucket: str, key: str, *, timeout: timedelta
    ) -> ObjectWriteStream:
        return ObjectWriteStream(
            lambda body: self._upload_spooled(bucket, key, body),
            timeout=timeout,
            name=f"/{bucket}/{key}",
        )
