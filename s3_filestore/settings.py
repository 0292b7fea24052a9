"""Store configuration (YAML file first, environment overrides)."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_REGION = "us-east-1"
DEFAULT_DELETE_CONCURRENCY = 16
DEFAULT_BUCKET_RETRIES = 5
DEFAULT_BUCKET_RETRY_INTERVAL = 2.0


@dataclass(frozen=True)
class S3Settings:
    endpoint_url: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    session_token: str | None = None
    region: str = DEFAULT_REGION
    url_style: str = "path"
    use_ssl: bool = False
    default_bucket: str | None = None
    delete_concurrency: int = DEFAULT_DELETE_CONCURRENCY
    bucket_retries: int = DEFAULT_BUCKET_RETRIES
    bucket_retry_interval: float = DEFAULT_BUCKET_RETRY_INTERVAL


def _parse_bool(value: Any, *, default: bool | None = None) -> bool | None:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    return default


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_number(name: str, value: Any, cast: type, default: Any) -> Any:
    if value is None:
        return default
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def load_settings_file(path: Path) -> dict[str, Any]:
    """Flatten the ``s3:`` and ``filestore:`` sections of a YAML config file."""

    with Path(path).open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"{path} must contain a YAML mapping")

    values: dict[str, Any] = {}
    for section in ("s3", "filestore"):
        block = payload.get(section) or {}
        if not isinstance(block, dict):
            raise ValueError(f"{path}: '{section}' must be a mapping")
        values.update(block)
    return values


def resolve_s3_settings(
    config_path: Path | None = None, env: Mapping[str, str] | None = None
) -> S3Settings:
    env = os.environ if env is None else env
    file_values = load_settings_file(config_path) if config_path else {}

    def pick(*names: str, key: str) -> Any:
        for name in names:
            value = _clean(env.get(name))
            if value is not None:
                return value
        return file_values.get(key)

    endpoint_url = _clean(pick("S3_ENDPOINT_URL", key="endpoint_url"))
    use_ssl = _parse_bool(pick("S3_USE_SSL", key="use_ssl"))
    if use_ssl is None:
        use_ssl = bool(endpoint_url and endpoint_url.lower().startswith("https://"))

    delete_concurrency = _parse_number(
        "delete_concurrency",
        pick("FILESTORE_DELETE_CONCURRENCY", key="delete_concurrency"),
        int,
        DEFAULT_DELETE_CONCURRENCY,
    )
    if delete_concurrency < 1:
        raise ValueError("delete_concurrency must be >= 1")

    return S3Settings(
        endpoint_url=endpoint_url,
        access_key=_clean(pick("S3_ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID", key="access_key")),
        secret_key=_clean(
            pick("S3_SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY", key="secret_key")
        ),
        session_token=_clean(pick("AWS_SESSION_TOKEN", key="session_token")),
        region=_clean(pick("S3_REGION", key="region")) or DEFAULT_REGION,
        url_style=_clean(pick("S3_URL_STYLE", key="url_style")) or "path",
        use_ssl=use_ssl,
        default_bucket=_clean(pick("S3_DEFAULT_BUCKET", "S3_BUCKET_NAME", key="default_bucket")),
        delete_concurrency=delete_concurrency,
        bucket_retries=_parse_number(
            "bucket_retries",
            pick("FILESTORE_BUCKET_RETRIES", key="bucket_retries"),
            int,
            DEFAULT_BUCKET_RETRIES,
        ),
        bucket_retry_interval=_parse_number(
            "bucket_retry_interval",
            pick("FILESTORE_BUCKET_RETRY_INTERVAL", key="bucket_retry_interval"),
            float,
            DEFAULT_BUCKET_RETRY_INTERVAL,
        ),
    )
