from __future__ import annotations

import tempfile
import time
from collections.abc import Callable
from datetime import timedelta
from types import TracebackType
from typing import BinaryIO

DEFAULT_SPOOL_SIZE = 8 * 1024 * 1024


class ObjectWriteStream:
    """Write-only stream that uploads its content as one object on ``close()``.

    Content is spooled in memory and rolls over to a temporary file past
    ``spool_size`` bytes. Writes (and the final upload) are refused once
    ``timeout`` has elapsed since the stream was opened. Leaving a ``with`` block
    through an exception discards the buffer without uploading.
    """

    def __init__(
        self,
        upload: Callable[[BinaryIO], str | None],
        *,
        timeout: timedelta,
        spool_size: int = DEFAULT_SPOOL_SIZE,
        clock: Callable[[], float] = time.monotonic,
        name: str = "",
    ) -> None:
        self.name = name
        self.etag: str | None = None
        self.bytes_written = 0
        self._upload = upload
        self._clock = clock
        self._deadline = clock() + timeout.total_seconds()
        self._buffer = tempfile.SpooledTemporaryFile(max_size=spool_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return False

    def seekable(self) -> bool:
        return False

    def writable(self) -> bool:
        return True

    def tell(self) -> int:
        return self.bytes_written

    def _check_deadline(self) -> None:
        if self._clock() > self._deadline:
            raise TimeoutError(f"write deadline exceeded for {self.name or 'object'}")

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("I/O operation on closed stream")
        self._check_deadline()
        written = self._buffer.write(data)
        self.bytes_written += written
        return written

    def flush(self) -> None:
        if not self._closed:
            self._buffer.flush()

    def abort(self) -> None:
        """Discard everything written so far; nothing is uploaded."""

        if self._closed:
            return
        self._closed = True
        self._buffer.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._check_deadline()
            self._buffer.seek(0)
            self.etag = self._upload(self._buffer)
        finally:
            self._buffer.close()

    def __enter__(self) -> ObjectWriteStream:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.abort()
        else:
            self.close()
