"""Path model: parsing, normalization and pure string helpers for store paths."""

from s3_filestore.io.paths import (
    DIRECTORY_MARKER_SUFFIX,
    ROOT,
    PathKind,
    StorePath,
    is_directory_marker,
    normalize_path,
    object_path,
    parse_path,
)
from s3_filestore.io.uri import (
    combine,
    get_directory_name,
    get_file_name,
    get_folder_name,
    is_path_rooted,
    split_segments,
    validate_bucket_name,
)

__all__ = [
    "DIRECTORY_MARKER_SUFFIX",
    "PathKind",
    "ROOT",
    "StorePath",
    "combine",
    "get_directory_name",
    "get_file_name",
    "get_folder_name",
    "is_directory_marker",
    "is_path_rooted",
    "normalize_path",
    "object_path",
    "parse_path",
    "split_segments",
    "validate_bucket_name",
]
