from __future__ import annotations

import re
from collections.abc import Iterable

SEPARATOR = "/"
S3_SCHEME = "s3://"

_IPV4_PATTERN = re.compile(r"^\d{1,3}(\.\d{1,3}){3}$")
_BUCKET_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.\-]{1,61}[a-z0-9]$")


def is_path_rooted(path: str) -> bool:
    """Return True for absolute store paths (``/bucket/key`` or ``s3://bucket/key``)."""

    return path.startswith(SEPARATOR) or path.startswith(S3_SCHEME)


def split_segments(path: str) -> list[str]:
    """Split on the separator, dropping the empty segments redundant separators produce."""

    return [segment for segment in path.split(SEPARATOR) if segment]


def combine(segments: Iterable[str]) -> str:
    """Join path segments with a single separator.

    Redundant separators are collapsed. A leading separator on the first non-empty
    segment and a trailing separator on the last one are preserved; bucket/key
    boundaries play no role here.
    """

    parts = [segment for segment in segments if segment]
    if not parts:
        return ""

    leading = SEPARATOR if parts[0].startswith(SEPARATOR) else ""
    trailing = SEPARATOR if parts[-1].endswith(SEPARATOR) else ""
    body = SEPARATOR.join(piece for part in parts for piece in split_segments(part))
    if not body:
        return leading or trailing
    return f"{leading}{body}{trailing}"


def get_file_name(path: str) -> str:
    """Return the last segment; empty when the path ends with a separator."""

    if path.endswith(SEPARATOR):
        return ""
    return path.rsplit(SEPARATOR, 1)[-1]


def get_folder_name(path: str) -> str:
    """Return the last segment, ignoring a trailing separator."""

    segments = split_segments(path)
    return segments[-1] if segments else ""


def get_directory_name(path: str) -> str:
    """Return the parent of ``path``.

    A trailing separator is ignored, so ``/b/dir/`` and ``/b/dir`` both yield ``/b``.
    The root is its own parent; a single relative segment has an empty parent.
    """

    rooted = path.startswith(SEPARATOR)
    segments = split_segments(path)
    parent = SEPARATOR.join(segments[:-1])
    if rooted:
        return f"{SEPARATOR}{parent}"
    return parent


def validate_bucket_name(name: str) -> str | None:
    """Return a reason when ``name`` breaks S3 bucket naming rules, else None."""

    if not name:
        return "bucket name is required"
    if SEPARATOR in name:
        return "bucket name must not contain a separator"
    if not 3 <= len(name) <= 63:
        return "bucket name must be 3-63 characters long"
    if not _BUCKET_PATTERN.match(name):
        return "bucket name must be lowercase letters, digits, '.' or '-' and start/end alphanumeric"
    if ".." in name:
        return "bucket name must not contain consecutive periods"
    if _IPV4_PATTERN.match(name):
        return "bucket name must not be formatted as an IP address"
    return None
