from __future__ import annotations

import logging

import pytest

from s3_filestore import BackendError, ErrorKind, InvalidPathError, RetryPolicy
from s3_filestore.buckets import BucketProvisioner
from s3_filestore.retry import conflict_retry_policy
from s3_filestore.testing import InMemoryS3Client


class _Flaky:
    def __init__(self, *kinds: ErrorKind) -> None:
        self.kinds = list(kinds)
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.kinds:
            raise BackendError("flaky", kind=self.kinds.pop(0), bucket="b")
        return "ok"


class _RacingClient(InMemoryS3Client):
    """Another writer creates the bucket between our listing and our create call."""

    def create_bucket(self, bucket: str) -> None:
        self.add_bucket(bucket)
        super().create_bucket(bucket)


def test_run_returns_first_success_without_sleeping(
    retry_policy: RetryPolicy, sleeps: list[float]
) -> None:
    operation = _Flaky()

    assert retry_policy.run(operation) == "ok"
    assert operation.calls == 1
    assert sleeps == []


def test_run_retries_conflicts_at_fixed_interval(
    caplog, retry_policy: RetryPolicy, sleeps: list[float]
) -> None:
    caplog.set_level(logging.INFO)
    operation = _Flaky(ErrorKind.CONFLICT, ErrorKind.CONFLICT)

    assert retry_policy.run(operation, description="ensure_bucket:b") == "ok"
    assert operation.calls == 3
    assert sleeps == [2.0, 2.0]
    messages = [r.getMessage() for r in caplog.records]
    assert any(
        "retry.attempt" in m and "attempt=1/5" in m and "operation=ensure_bucket:b" in m
        for m in messages
    )


def test_run_gives_up_after_max_retries(retry_policy: RetryPolicy, sleeps: list[float]) -> None:
    operation = _Flaky(*([ErrorKind.CONFLICT] * 10))

    with pytest.raises(BackendError) as excinfo:
        retry_policy.run(operation)

    assert excinfo.value.kind is ErrorKind.CONFLICT
    assert operation.calls == 6
    assert len(sleeps) == 5


@pytest.mark.parametrize("kind", [ErrorKind.NOT_FOUND, ErrorKind.OTHER, ErrorKind.INVALID_ARGUMENT])
def test_run_propagates_other_kinds_immediately(
    retry_policy: RetryPolicy, sleeps: list[float], kind: ErrorKind
) -> None:
    operation = _Flaky(kind)

    with pytest.raises(BackendError):
        retry_policy.run(operation)
    assert operation.calls == 1
    assert sleeps == []


def test_run_does_not_catch_unclassified_exceptions(retry_policy: RetryPolicy) -> None:
    def explode() -> None:
        raise KeyError("nope")

    with pytest.raises(KeyError):
        retry_policy.run(explode)


def test_policy_rejects_negative_settings() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_retries=-1)
    with pytest.raises(ValueError):
        RetryPolicy(interval=-0.5)


def test_conflict_retry_policy_defaults() -> None:
    policy = conflict_retry_policy()

    assert policy.max_retries == 5
    assert policy.interval == 2.0
    assert policy.retry_on == frozenset({ErrorKind.CONFLICT})


def test_ensure_skips_existing_bucket(buckets: BucketProvisioner, client: InMemoryS3Client) -> None:
    client.add_bucket("data")

    buckets.ensure("data")

    assert client.op_names() == ["list_buckets"]


def test_ensure_resolves_creation_race(retry_policy: RetryPolicy, sleeps: list[float]) -> None:
    client = _RacingClient()
    provisioner = BucketProvisioner(client, retry_policy)

    provisioner.ensure("raced")

    assert client.bucket_names() == ["raced"]
    assert sleeps == [2.0]
    assert client.op_names() == ["list_buckets", "create_bucket", "list_buckets"]


def test_ensure_retries_transient_conflicts(
    buckets: BucketProvisioner, client: InMemoryS3Client, sleeps: list[float]
) -> None:
    client.fail_next("create_bucket", ErrorKind.CONFLICT, times=2)

    buckets.ensure("data")

    assert client.bucket_names() == ["data"]
    assert sleeps == [2.0, 2.0]


def test_ensure_surfaces_conflict_after_retry_budget(
    buckets: BucketProvisioner, client: InMemoryS3Client, sleeps: list[float]
) -> None:
    client.fail_next("create_bucket", ErrorKind.CONFLICT, times=6)

    with pytest.raises(BackendError) as excinfo:
        buckets.ensure("data")

    assert excinfo.value.kind is ErrorKind.CONFLICT
    assert client.op_names().count("create_bucket") == 6
    assert len(sleeps) == 5


def test_ensure_does_not_retry_other_failures(
    buckets: BucketProvisioner, client: InMemoryS3Client, sleeps: list[float]
) -> None:
    client.fail_next("create_bucket", ErrorKind.OTHER)

    with pytest.raises(BackendError):
        buckets.ensure("data")
    assert sleeps == []


def test_ensure_validates_bucket_name(buckets: BucketProvisioner, client: InMemoryS3Client) -> None:
    with pytest.raises(InvalidPathError) as excinfo:
        buckets.ensure("Bad_Name")

    assert excinfo.value.path == "/Bad_Name/"
    assert client.ops == []
