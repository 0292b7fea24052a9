from __future__ import annotations

import pytest

from s3_filestore.errors import InvalidPathError, PathParseError
from s3_filestore.io.paths import ROOT, PathKind, StorePath, normalize_path, parse_path
from s3_filestore.io.uri import (
    combine,
    get_directory_name,
    get_file_name,
    get_folder_name,
    is_path_rooted,
    validate_bucket_name,
)


@pytest.mark.parametrize(
    ("raw", "bucket", "key", "kind"),
    [
        ("/", None, "", PathKind.ROOT),
        ("//", None, "", PathKind.ROOT),
        ("s3://", None, "", PathKind.ROOT),
        ("/bucket", "bucket", "", PathKind.BUCKET),
        ("/bucket/", "bucket", "", PathKind.BUCKET),
        ("/bucket/a/b.txt", "bucket", "a/b.txt", PathKind.OBJECT),
        ("/bucket//a///b.txt", "bucket", "a/b.txt", PathKind.OBJECT),
        ("/bucket/a/", "bucket", "a/", PathKind.OBJECT),
        ("s3://bucket/a/b", "bucket", "a/b", PathKind.OBJECT),
    ],
)
def test_parse_path_recognizes_root_bucket_and_object(
    raw: str, bucket: str | None, key: str, kind: PathKind
) -> None:
    path = parse_path(raw)
    assert path.bucket == bucket
    assert path.key == key
    assert path.kind is kind


@pytest.mark.parametrize(
    "raw",
    ["", "   ", "relative/key", "/bucket/../secret", "/bucket/./x", "/bucket/a\x00b", "/b/\nx"],
)
def test_parse_path_rejects_malformed_input(raw: str) -> None:
    with pytest.raises(PathParseError):
        parse_path(raw)


def test_parse_failure_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_path("")
    assert issubclass(PathParseError, InvalidPathError)


def test_as_directory_adds_a_single_trailing_separator() -> None:
    assert parse_path("/b/a", as_directory=True).key == "a/"
    assert parse_path("/b/a/", as_directory=True).key == "a/"
    assert parse_path("/b", as_directory=True).kind is PathKind.BUCKET
    assert parse_path("/", as_directory=True) == ROOT


@pytest.mark.parametrize(
    "raw",
    ["/", "/bucket/", "/bucket/key", "/bucket/dir/", "/bucket/a/b/c.txt", "s3://bucket/x"],
)
def test_render_then_parse_round_trips(raw: str) -> None:
    path = parse_path(raw)
    assert parse_path(path.render()) == path


def test_render_forms() -> None:
    assert ROOT.render() == "/"
    assert parse_path("/bucket").render() == "/bucket/"
    assert parse_path("/bucket/a/b").render() == "/bucket/a/b"
    assert str(parse_path("/bucket/a/")) == "/bucket/a/"
    assert parse_path("/bucket/a/b").uri == "s3://bucket/a/b"


def test_path_equality_is_case_sensitive() -> None:
    assert parse_path("/bucket/Key") != parse_path("/bucket/key")
    assert parse_path("/bucket/key") == StorePath(bucket="bucket", key="key")


def test_store_path_rejects_inconsistent_fields() -> None:
    with pytest.raises(PathParseError):
        StorePath(bucket=None, key="orphan")
    with pytest.raises(PathParseError):
        StorePath(bucket="", key="")


def test_prefix_and_marker_key() -> None:
    assert parse_path("/b/").prefix == ""
    assert parse_path("/b/sub/dir").prefix == "sub/dir/"
    assert parse_path("/b/sub/dir/").marker_key == "sub/dir/dir_$folder$"
    assert parse_path("/b/dir").marker_key == "dir/dir_$folder$"


def test_normalize_relative_key_matches_rooted_parse() -> None:
    assert normalize_path("data", "x/y.txt") == parse_path("/data/x/y.txt")
    assert normalize_path("/data/", "x/y.txt") == parse_path("/data/x/y.txt")
    assert normalize_path("s3://data", "x") == parse_path("/data/x")


def test_normalize_resolves_under_nested_default_directory() -> None:
    assert normalize_path("/data/sub/", "f.txt") == parse_path("/data/sub/f.txt")
    assert normalize_path("/data/sub/", "dir", as_directory=True).key == "sub/dir/"


def test_normalize_keeps_rooted_paths() -> None:
    assert normalize_path("data", "/other/k") == parse_path("/other/k")
    assert normalize_path("data", "s3://other/k") == parse_path("/other/k")


def test_normalize_rejects_empty_path() -> None:
    with pytest.raises(PathParseError):
        normalize_path("data", "")


@pytest.mark.parametrize(
    ("segments", "expected"),
    [
        (["/", "b", "k"], "/b/k"),
        (["a/", "/b/", "c"], "a/b/c"),
        (["/b/", "dir/"], "/b/dir/"),
        (["a", "", "b"], "a/b"),
        (["/"], "/"),
        ([], ""),
    ],
)
def test_combine_collapses_redundant_separators(segments: list[str], expected: str) -> None:
    assert combine(segments) == expected


@pytest.mark.parametrize(
    ("path", "expected"),
    [("/b/k/f.txt", "/b/k"), ("/b/dir/", "/b"), ("/b", "/"), ("/", "/"), ("a/b", "a"), ("f", "")],
)
def test_get_directory_name(path: str, expected: str) -> None:
    assert get_directory_name(path) == expected


def test_get_file_and_folder_name() -> None:
    assert get_file_name("/b/k/f.txt") == "f.txt"
    assert get_file_name("/b/dir/") == ""
    assert get_file_name("f.txt") == "f.txt"
    assert get_folder_name("/b/k/dir/") == "dir"
    assert get_folder_name("/") == ""


def test_is_path_rooted() -> None:
    assert is_path_rooted("/b/k")
    assert is_path_rooted("s3://b/k")
    assert not is_path_rooted("b/k")


@pytest.mark.parametrize("name", ["abc", "my-bucket.1", "a" * 63])
def test_validate_bucket_name_accepts_valid_names(name: str) -> None:
    assert validate_bucket_name(name) is None


@pytest.mark.parametrize(
    "name", ["", "ab", "a" * 64, "UPPER", "-abc", "abc-", "a..b", "192.168.1.1", "a/b", "under_score"]
)
def test_validate_bucket_name_rejects_invalid_names(name: str) -> None:
    assert validate_bucket_name(name)
