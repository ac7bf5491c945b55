"""
The write-closer protocol shared by every stage of the pipeline.
"""

from typing import Protocol, Union, runtime_checkable

BytesLike = Union[bytes, bytearray, memoryview]


@runtime_checkable
class WriteCloser(Protocol):
    """
    A byte sink that can be closed.

    write() returns the number of bytes accepted or raises; close() releases
    the sink and everything below it.
    """

    def write(self, data: BytesLike) -> int:
        ...

    def close(self) -> None:
        ...


class WriterContextMixin:
    """Close the writer when leaving a ``with`` block."""

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
