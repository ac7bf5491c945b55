"""
Terminal writers at the bottom of a pipeline: a file, a process stream that
must stay open, and a sink that drops everything.
"""

import os
from typing import BinaryIO, TextIO, Union

from logwriter.core.base import BytesLike, WriterContextMixin
from logwriter.core.errors import WriterClosedError
from logwriter.utils.logging import get_logger

logger = get_logger(__name__)


class DiscardWriter(WriterContextMixin):
    """Accepts every write and drops it."""

    def __init__(self) -> None:
        self._closed = False

    def write(self, data: BytesLike) -> int:
        if self._closed:
            raise WriterClosedError()
        return len(data)

    def close(self) -> None:
        self._closed = True


# Shared instance. Once closed it stays closed; open_writer() hands out
# fresh instances instead.
Discard = DiscardWriter()


class NopCloserFile(WriterContextMixin):
    """
    Writes to an already open stream and never closes it.

    Used for stderr so that closing the pipeline does not close the
    process stream.
    """

    def __init__(self, stream: Union[TextIO, BinaryIO]):
        """
        Initialize wrapper.

        Args:
            stream: Binary stream, or text stream exposing a binary buffer
        """
        self._text_stream = stream
        self._stream = getattr(stream, "buffer", stream)

    def write(self, data: BytesLike) -> int:
        # Pending text written by other code goes out first.
        if self._stream is not self._text_stream:
            self._text_stream.flush()
        written = self._stream.write(data)
        self._stream.flush()
        return len(data) if written is None else written

    def close(self) -> None:
        # No operation.
        pass


class FileWriter(WriterContextMixin):
    """
    Appends to a file through a raw file descriptor.

    Attributes:
        path: Path of the open file
    """

    def __init__(self, path: str, flags: int, mode: int):
        """
        Open a file.

        Args:
            path: File path
            flags: os.open() flags
            mode: Permission bits for newly created files

        Raises:
            OSError: If the file cannot be opened
        """
        self.path = path
        self._fd = os.open(path, flags, mode)

        logger.debug("Opened log file", path=path, flags=flags, mode=oct(mode))

    def write(self, data: BytesLike) -> int:
        """
        Write all of data to the file.

        Returns:
            Number of bytes written

        Raises:
            WriterClosedError: If the file is closed
            OSError: If the write fails
        """
        if self._fd is None:
            raise WriterClosedError()

        view = memoryview(data)
        total = 0
        while total < len(view):
            written = os.write(self._fd, view[total:])
            if written == 0:
                break
            total += written
        return total

    def close(self) -> None:
        """
        Close the file.

        Raises:
            WriterClosedError: If the file is already closed
        """
        if self._fd is None:
            raise WriterClosedError()
        fd, self._fd = self._fd, None
        os.close(fd)

        logger.debug("Closed log file", path=self.path)

    def __repr__(self) -> str:
        return f"FileWriter(path={self.path!r})"
