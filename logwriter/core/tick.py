"""
Thread-safe writer that pokes its inner writer on a fixed interval.
"""

import threading
from typing import Optional

from logwriter.core.base import BytesLike, WriteCloser, WriterContextMixin
from logwriter.core.errors import WriterClosedError
from logwriter.utils.logging import get_logger

logger = get_logger(__name__)


class TickWriter(WriterContextMixin):
    """
    Calls write(b"") on the inner writer every interval.

    The main use is flushing a Buffer while the application is idle:

        writer = Buffer(4096, 1.0, file_writer)
        writer = TickWriter(writer, 1.0)
        ...
        writer.close()

    It also serializes write() and close() with a lock, which makes inner
    writers that are not thread-safe usable from several threads. Writes from
    different threads are not ordered relative to each other.
    """

    def __init__(self, writer: WriteCloser, interval: float):
        """
        Initialize tick writer.

        Args:
            writer: Inner writer
            interval: Seconds between ticks (non-positive disables ticking)
        """
        self._writer = writer
        self.interval = interval

        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._closed = False
        self._thread: Optional[threading.Thread] = None
        self._last_tick_error: Optional[BaseException] = None

        if interval > 0:
            self._thread = threading.Thread(
                target=self._tick_loop,
                name="logwriter-tick",
                daemon=True,
            )
            self._thread.start()

        logger.debug("Initialized tick writer", interval=interval)

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed

    def write(self, data: BytesLike) -> int:
        """
        Write data to the inner writer under the lock.

        Args:
            data: Bytes to write

        Returns:
            Number of bytes written by the inner writer

        Raises:
            WriterClosedError: If the writer is closed
        """
        with self._lock:
            if self._closed:
                raise WriterClosedError()
            return self._writer.write(data)

    def close(self) -> None:
        """
        Stop ticking and close the inner writer.

        Once this returns, nothing reaches the inner writer anymore.

        Raises:
            WriterClosedError: If the writer is already closed
        """
        try:
            with self._lock:
                if self._closed:
                    raise WriterClosedError()
                self._closed = True
                self._cancel.set()
                self._writer.close()
        finally:
            self._join()

    def _join(self) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _tick_loop(self) -> None:
        """Issue an empty write every interval until cancelled."""
        while not self._cancel.wait(self.interval):
            try:
                self.write(b"")
            except WriterClosedError:
                break
            except Exception as e:
                # A latched Buffer error comes back on every tick.
                if e is not self._last_tick_error:
                    self._last_tick_error = e
                    logger.warning(
                        "Periodic flush failed",
                        error=str(e),
                        error_type=type(e).__name__,
                    )

        logger.debug("Stopped tick thread")

    def __repr__(self) -> str:
        return f"TickWriter(interval={self.interval}, closed={self._closed})"
