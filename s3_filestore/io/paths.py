from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from s3_filestore.errors import PathParseError
from s3_filestore.io.uri import (
    S3_SCHEME,
    SEPARATOR,
    combine,
    get_folder_name,
    is_path_rooted,
    split_segments,
)

DIRECTORY_MARKER_SUFFIX = "_$folder$"

_RELATIVE_SEGMENTS = frozenset({".", ".."})


class PathKind(str, Enum):
    ROOT = "root"
    BUCKET = "bucket"
    OBJECT = "object"


@dataclass(frozen=True)
class StorePath:
    """A parsed store path: the root, a bucket, or an object key inside a bucket.

    ``bucket`` is None only for the root. ``key`` is empty for the root and for
    bucket paths; a trailing separator on ``key`` marks a directory prefix.
    """

    bucket: str | None
    key: str = ""

    def __post_init__(self) -> None:
        if self.bucket is None and self.key:
            raise PathParseError("root path cannot carry a key", path=self.key)
        if self.bucket is not None and not self.bucket:
            raise PathParseError("bucket must be non-empty", path=self.key)

    @property
    def kind(self) -> PathKind:
        if self.bucket is None:
            return PathKind.ROOT
        if not self.key:
            return PathKind.BUCKET
        return PathKind.OBJECT

    @property
    def prefix(self) -> str:
        """Key prefix matching everything below this path when read as a directory."""

        if not self.key:
            return ""
        return self.key if self.key.endswith(SEPARATOR) else f"{self.key}{SEPARATOR}"

    @property
    def uri(self) -> str:
        if self.bucket is None:
            return S3_SCHEME
        return f"{S3_SCHEME}{self.bucket}/{self.key}"

    @property
    def marker_key(self) -> str:
        """Key of the zero-byte object that keeps an empty directory listable."""

        folder = get_folder_name(self.key)
        return combine([self.prefix, f"{folder}{DIRECTORY_MARKER_SUFFIX}"])

    def render(self) -> str:
        kind = self.kind
        if kind is PathKind.ROOT:
            return SEPARATOR
        if kind is PathKind.BUCKET:
            return f"/{self.bucket}/"
        return f"/{self.bucket}/{self.key}"

    def as_directory(self) -> StorePath:
        if self.kind is not PathKind.OBJECT:
            return self
        return replace(self, key=self.prefix)

    def __str__(self) -> str:
        return self.render()


ROOT = StorePath(bucket=None)


def is_directory_marker(key: str) -> bool:
    return key.endswith(DIRECTORY_MARKER_SUFFIX)


def _check_characters(raw: str) -> None:
    if any(ord(ch) < 32 or ch == "\x7f" for ch in raw):
        raise PathParseError("path contains control characters", path=repr(raw))


def parse_path(raw: str, *, as_directory: bool = False) -> StorePath:
    """Parse a rooted path string (``/bucket/key`` or ``s3://bucket/key``).

    Redundant separators collapse, so ``/b/a//c`` addresses key ``a/c``. Keys
    holding empty segments can still be listed but are not addressable by path.

    Raises:
        PathParseError: If ``raw`` is empty, not rooted, or malformed.
    """

    if raw is None or not raw.strip():
        raise PathParseError("path is required", path=raw)
    _check_characters(raw)

    if raw.startswith(S3_SCHEME):
        body = raw[len(S3_SCHEME) :]
    elif raw.startswith(SEPARATOR):
        body = raw
    else:
        raise PathParseError("path must be rooted", path=raw)

    segments = split_segments(body)
    if any(segment in _RELATIVE_SEGMENTS for segment in segments):
        raise PathParseError("relative segments are not allowed", path=raw)
    if not segments:
        return ROOT

    bucket, rest = segments[0], segments[1:]
    key = SEPARATOR.join(rest)
    if key and (as_directory or body.endswith(SEPARATOR)):
        key = f"{key}{SEPARATOR}"
    return StorePath(bucket=bucket, key=key)


def normalize_path(default_directory: str, raw: str, *, as_directory: bool = False) -> StorePath:
    """Resolve ``raw`` against ``default_directory`` unless it is already rooted."""

    if raw is None or not raw.strip():
        raise PathParseError("path is required", path=raw)
    if is_path_rooted(raw):
        return parse_path(raw, as_directory=as_directory)

    base = default_directory or SEPARATOR
    if base.startswith(S3_SCHEME):
        base = SEPARATOR + base[len(S3_SCHEME) :]
    return parse_path(combine([SEPARATOR, base, raw]), as_directory=as_directory)


def object_path(bucket: str, key: str) -> str:
    """Render an absolute path for a key returned by a listing."""

    return f"/{bucket}/{key}"
