from __future__ import annotations

from datetime import datetime, timezone

import pytest

from s3_filestore import RetryPolicy, S3FileStore
from s3_filestore.buckets import BucketProvisioner
from s3_filestore.testing import InMemoryS3Client

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def retry_policy(sleeps: list[float]) -> RetryPolicy:
    return RetryPolicy(max_retries=5, interval=2.0, sleep=sleeps.append)


@pytest.fixture
def client() -> InMemoryS3Client:
    return InMemoryS3Client(page_size=2, clock=lambda: FIXED_TIME)


@pytest.fixture
def buckets(client: InMemoryS3Client, retry_policy: RetryPolicy) -> BucketProvisioner:
    return BucketProvisioner(client, retry_policy)


@pytest.fixture
def store(client: InMemoryS3Client, retry_policy: RetryPolicy) -> S3FileStore:
    return S3FileStore.create(client, "data", retry_policy=retry_policy)
