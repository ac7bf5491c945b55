"""
Write buffer specialized for log output.

Small writes are accumulated and flushed to the inner writer when the buffer
reaches a size threshold or when a flush interval has elapsed. Writes at or
above the size threshold bypass the buffer.
"""

import time
from enum import Enum
from typing import Callable, Optional

from logwriter.core.base import BytesLike, WriteCloser, WriterContextMixin
from logwriter.core.errors import (
    LogWriterError,
    ShortWriteError,
    WriterClosedError,
)
from logwriter.utils.logging import get_logger

logger = get_logger(__name__)


class BufferState(Enum):
    """Lifecycle states of a Buffer."""

    OPEN = "open"
    ERROR = "error"
    CLOSED = "closed"


class Buffer(WriterContextMixin):
    """
    Buffered writer in the spirit of io.BufferedWriter, tuned for logs.

    The flush condition is only evaluated on write(), so something has to
    keep writing for time-based flushes to happen. TickWriter does that with
    empty writes.

    The first failure of the inner writer is latched: every later write()
    and close() raises the same exception without touching the inner writer.

    Attributes:
        size: Flush once this many bytes are buffered
        interval: Flush once this many seconds passed since the last flush
        now: Clock returning seconds, injectable for tests
    """

    def __init__(
        self,
        size: int,
        interval: float,
        writer: WriteCloser,
        now: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize buffer.

        Args:
            size: Size threshold in bytes (non-positive disables buffering)
            interval: Flush interval in seconds
            writer: Inner writer
            now: Monotonic clock in seconds
        """
        self.size = size
        self.interval = interval
        self.now = now

        self._writer = writer
        self._buffer = bytearray()
        self._last_flush = now()
        self._state = BufferState.OPEN
        self._error: Optional[BaseException] = None

    @property
    def state(self) -> BufferState:
        """Current lifecycle state."""
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        """The latched error, if any."""
        return self._error

    def buffered(self) -> int:
        """
        Get the number of bytes waiting to be flushed.

        Returns:
            Buffered byte count
        """
        return len(self._buffer)

    def write(self, data: BytesLike) -> int:
        """
        Write data, flushing if needed.

        An empty write appends nothing but still evaluates the flush
        condition.

        Args:
            data: Bytes to write

        Returns:
            len(data)

        Raises:
            WriterClosedError: If the buffer is closed
            ShortWriteError: If the inner writer wrote fewer bytes
        """
        self._check_state()

        if data and self.size <= len(data):
            return self._large_write(data)
        return self._small_write(data)

    def close(self) -> None:
        """
        Flush remaining data and close the inner writer.

        If the buffer already failed, the latched error is raised and the
        inner writer is left untouched. The buffer then stays in the error
        state, so closing again raises the same error.

        Raises:
            WriterClosedError: If the buffer is already closed
        """
        self._check_state()

        self._flush()
        try:
            self._writer.close()
        except Exception as e:
            self._fail(e)
            raise

        self._state = BufferState.CLOSED
        logger.debug("Closed buffer")

    def _check_state(self) -> None:
        if self._state is BufferState.CLOSED:
            raise WriterClosedError()
        if self._state is BufferState.ERROR:
            # Re-raised on every call; drop the previous traceback so it does
            # not grow with each replay.
            raise self._error.with_traceback(None)

    def _fail(self, error: BaseException) -> None:
        self._state = BufferState.ERROR
        self._error = error

        logger.warning(
            "Buffer entered error state",
            error=str(error),
            error_type=type(error).__name__,
            dropped_bytes=len(self._buffer),
        )

    def _need_flush(self) -> bool:
        expired = abs(self.now() - self._last_flush) >= self.interval
        overflow = self.size <= len(self._buffer)
        return expired or overflow

    def _flush(self) -> None:
        """
        Write out the whole buffer in one inner write.

        The flush time is recorded even when there is nothing to write.
        """
        n = len(self._buffer)
        try:
            written = n
            if n > 0:
                written = self._writer.write(bytes(self._buffer))
        except Exception as e:
            self._last_flush = self.now()
            self._buffer.clear()
            self._fail(e)
            raise

        self._last_flush = self.now()
        self._buffer.clear()

        if written < n:
            error = ShortWriteError(n, written)
            self._fail(error)
            raise error

        if n > 0:
            logger.debug("Flushed buffer", size=n)

    def _small_write(self, data: BytesLike) -> int:
        # May grow the buffer to nearly twice self.size before the flush.
        self._buffer += data
        if self._need_flush():
            self._flush()
        return len(data)

    def _large_write(self, data: BytesLike) -> int:
        self._flush()
        if self._buffer:
            raise LogWriterError("buffer is not empty after flush")

        try:
            written = self._writer.write(data)
        except Exception as e:
            self._fail(e)
            raise
        self._last_flush = self.now()

        if written < len(data):
            error = ShortWriteError(len(data), written)
            self._fail(error)
            raise error

        logger.debug("Wrote through buffer", size=len(data))
        return written

    def __repr__(self) -> str:
        return (
            f"Buffer(size={self.size}, interval={self.interval}, "
            f"state={self._state.value}, buffered={len(self._buffer)})"
        )
