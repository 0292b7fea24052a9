from __future__ import annotations

import logging
from dataclasses import dataclass, field

from s3_filestore.errors import InvalidPathError
from s3_filestore.io.uri import validate_bucket_name
from s3_filestore.observability import log_event
from s3_filestore.retry import RetryPolicy, conflict_retry_policy
from s3_filestore.store.object_store import BucketInfo, ObjectStoreClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BucketProvisioner:
    """Bucket lookup and idempotent, race-tolerant bucket creation."""

    client: ObjectStoreClient
    retry_policy: RetryPolicy = field(default_factory=conflict_retry_policy)

    def find(self, bucket: str) -> BucketInfo | None:
        for info in self.client.list_buckets():
            if info.name == bucket:
                return info
        return None

    def exists(self, bucket: str) -> bool:
        return self.find(bucket) is not None

    def ensure(self, bucket: str) -> None:
        """Create ``bucket`` unless it already exists.

        A conflict means another writer is creating the same bucket; each retry
        re-checks the listing first and succeeds once the bucket shows up.
        """

        reason = validate_bucket_name(bucket)
        if reason:
            raise InvalidPathError(f"invalid bucket name: {reason}", path=f"/{bucket}/")

        def attempt() -> None:
            if self.exists(bucket):
                return
            self.client.create_bucket(bucket)
            log_event(logger, "store.ensure_bucket", bucket=bucket, action="created")

        self.retry_policy.run(attempt, description=f"ensure_bucket:{bucket}")
