from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from s3_filestore import FileStoreError, S3FileStore
from s3_filestore.settings import resolve_s3_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Directory-style access to an S3 bucket store.")
    parser.add_argument("--config", type=Path, default=None, help="YAML settings file")
    parser.add_argument("--default-dir", type=str, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")

    commands = parser.add_subparsers(dest="command", required=True)

    ls = commands.add_parser("ls", help="list files in a directory")
    ls.add_argument("directory")

    ls_dirs = commands.add_parser("ls-dirs", help="list sub-directories")
    ls_dirs.add_argument("directory")

    mkdir = commands.add_parser("mkdir", help="create a directory (and its bucket)")
    mkdir.add_argument("directory")

    rmdir = commands.add_parser("rmdir", help="delete a directory")
    rmdir.add_argument("directory")
    rmdir.add_argument("--no-recursive", action="store_true")

    rm = commands.add_parser("rm", help="delete a file")
    rm.add_argument("path")

    put = commands.add_parser("put", help="upload a local file")
    put.add_argument("local_path", type=Path)
    put.add_argument("path")

    get = commands.add_parser("get", help="download a file")
    get.add_argument("path")
    get.add_argument("local_path", type=Path)

    stat = commands.add_parser("stat", help="print size, last-modified time and ETag")
    stat.add_argument("path")
    return parser


def _build_store(args: argparse.Namespace) -> S3FileStore:
    settings = resolve_s3_settings(args.config)
    if not settings.endpoint_url and not settings.access_key:
        logger.info("No S3 endpoint/credentials configured; falling back to the boto3 defaults.")
    return S3FileStore.from_settings(settings)


def _run(store: S3FileStore, args: argparse.Namespace) -> int:
    command = args.command
    if command == "ls":
        for path in store.enumerate_files(args.directory):
            print(path)
    elif command == "ls-dirs":
        for path in store.enumerate_directories(args.directory):
            print(path)
    elif command == "mkdir":
        store.create_directory(args.directory)
    elif command == "rmdir":
        report = store.delete_directory(args.directory, recursive=not args.no_recursive)
        print(f"deleted {len(report.deleted)} objects from {report.path}")
    elif command == "rm":
        store.delete_file(args.path)
    elif command == "put":
        store.upload_from_local_file(args.local_path, args.path)
    elif command == "get":
        store.download_to_local_file(args.path, args.local_path)
    elif command == "stat":
        size = store.get_file_size(args.path)
        modified = store.get_last_modified_time(args.path)
        etag = store.try_get_etag(args.path)
        print(f"size={size} last_modified={modified.isoformat()} etag={etag}")
    return 0


def main(argv: list[str] | None = None, *, store: S3FileStore | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    store = store or _build_store(args)
    if args.default_dir:
        store = store.with_default_directory(args.default_dir)

    try:
        return _run(store, args)
    except FileStoreError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
