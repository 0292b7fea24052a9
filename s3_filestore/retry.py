from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from s3_filestore.errors import BackendError, ErrorKind
from s3_filestore.observability import log_event

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-interval retry of classified backend errors.

    ``max_retries`` counts retries, so an operation runs at most
    ``max_retries + 1`` times. After the last attempt the error propagates as-is.
    """

    max_retries: int = 5
    interval: float = 2.0
    retry_on: frozenset[ErrorKind] = frozenset({ErrorKind.CONFLICT})
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.interval < 0:
            raise ValueError("interval must be >= 0")

    def run(self, operation: Callable[[], T], *, description: str = "") -> T:
        attempt = 0
        while True:
            try:
                return operation()
            except BackendError as exc:
                if exc.kind not in self.retry_on or attempt >= self.max_retries:
                    raise
                attempt += 1
                log_event(
                    logger,
                    "retry.attempt",
                    operation=description,
                    attempt=f"{attempt}/{self.max_retries}",
                    kind=exc.kind.value,
                )
                self.sleep(self.interval)


def conflict_retry_policy(
    max_retries: int = 5, interval: float = 2.0, *, sleep: Callable[[float], None] = time.sleep
) -> RetryPolicy:
    """Policy absorbing the bucket-creation race between concurrent first writers."""

    return RetryPolicy(
        max_retries=max_retries,
        interval=interval,
        retry_on=frozenset({ErrorKind.CONFLICT}),
        sleep=sleep,
    )
