"""
Writer that compresses every write into one independent frame.
"""

from logwriter.core.algorithm import Algorithm
from logwriter.core.base import BytesLike, WriteCloser, WriterContextMixin
from logwriter.utils.logging import get_logger

logger = get_logger(__name__)


class CompressedWriter(WriterContextMixin):
    """
    Compresses data before handing it to the inner writer.

    Each write() becomes exactly one frame, forwarded in a single inner
    write. Put a Buffer in front of this writer so frames are large enough
    to compress well.

    Attributes:
        algorithm: Algorithm producing the frames
    """

    def __init__(self, writer: WriteCloser, algorithm: Algorithm):
        """
        Initialize compressed writer.

        Args:
            writer: Inner writer receiving frames
            algorithm: Compression algorithm owned by this writer
        """
        self._writer = writer
        self.algorithm = algorithm
        self._scratch = bytearray()

    def write(self, data: BytesLike) -> int:
        """
        Compress data as one frame and write it.

        Args:
            data: Plain bytes

        Returns:
            Number of plain bytes accepted (len(data))

        Raises:
            CodecError: If compression fails
        """
        try:
            self.algorithm.compress(data, self._scratch)
            self._writer.write(bytes(self._scratch))

            logger.debug(
                "Wrote frame",
                algorithm=self.algorithm.name,
                plain_size=len(data),
                frame_size=len(self._scratch),
            )
        finally:
            self._scratch.clear()

        return len(data)

    def close(self) -> None:
        """Close the inner writer."""
        self._writer.close()

    def __repr__(self) -> str:
        return f"CompressedWriter(algorithm={self.algorithm!r})"
