"""
Compression algorithms for the compressed writer.

Every algorithm turns one input into one complete, independently decodable
frame. Both real codecs decode a concatenation of frames to the concatenation
of their inputs, so a log file is simply frames written back to back.
"""

import gzip
import io
import zlib
from abc import ABC, abstractmethod
from typing import Any, Optional

import zstandard

from logwriter.core.base import BytesLike
from logwriter.core.errors import CodecError
from logwriter.utils.logging import get_logger

logger = get_logger(__name__)


class Algorithm(ABC):
    """
    A compression codec producing self-contained frames.

    Instances own their encoder and are not safe for concurrent use; give
    each CompressedWriter its own instance.
    """

    name: str = ""

    @abstractmethod
    def compress(self, data: BytesLike, out: bytearray) -> None:
        """
        Compress data as one frame and append it to out.

        Args:
            data: Uncompressed bytes
            out: Buffer receiving the frame

        Raises:
            CodecError: If the encoder cannot be built or fails
        """

    @abstractmethod
    def decompress(self, data: BytesLike, out: bytearray) -> None:
        """
        Decompress one or more concatenated frames and append them to out.

        Args:
            data: Compressed bytes
            out: Buffer receiving the plain bytes

        Raises:
            CodecError: If the input is not a valid stream
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NopAlgorithm(Algorithm):
    """Pass-through algorithm used when no compression is configured."""

    name = "none"

    def compress(self, data: BytesLike, out: bytearray) -> None:
        out += data

    def decompress(self, data: BytesLike, out: bytearray) -> None:
        out += data


class _LazyEncoderAlgorithm(Algorithm):
    """
    Algorithm whose encoder is built on first use.

    The encoder is built at most once. If building fails, the failure is
    kept and raised again on every later call.
    """

    def __init__(self) -> None:
        self._encoder: Any = None
        self._init_error: Optional[CodecError] = None
        self._initialized = False

    @abstractmethod
    def _new_encoder(self) -> Any:
        """Build the encoder reused by every compress() call."""

    def _get_encoder(self) -> Any:
        if not self._initialized:
            self._initialized = True
            try:
                self._encoder = self._new_encoder()
            except Exception as e:
                self._init_error = CodecError(
                    f"failed to initialize {self.name} encoder: {e}"
                )
                self._init_error.__cause__ = e
                logger.error(
                    "Encoder initialization failed",
                    algorithm=self.name,
                    error=str(e),
                )
            else:
                logger.debug("Initialized encoder", algorithm=self.name)

        if self._init_error is not None:
            raise self._init_error.with_traceback(None)
        return self._encoder


class GzipAlgorithm(_LazyEncoderAlgorithm):
    """
    Gzip frames. Each frame is a complete gzip member.

    A pristine deflate state is built once; every call continues from a copy
    of it, which resets the encoder without rebuilding it.
    """

    name = "gzip"

    # wbits=31 selects the gzip container (header and CRC32/size trailer).
    GZIP_WBITS = 31

    def __init__(self, level: int = 6):
        """
        Initialize gzip algorithm.

        Args:
            level: Compression level (1-9)
        """
        super().__init__()
        self.level = level

    def _new_encoder(self) -> Any:
        return zlib.compressobj(self.level, zlib.DEFLATED, self.GZIP_WBITS)

    def compress(self, data: BytesLike, out: bytearray) -> None:
        encoder = self._get_encoder().copy()
        try:
            out += encoder.compress(data)
            out += encoder.flush(zlib.Z_FINISH)
        except zlib.error as e:
            raise CodecError(f"gzip compression failed: {e}") from e

    def decompress(self, data: BytesLike, out: bytearray) -> None:
        try:
            with gzip.GzipFile(fileobj=io.BytesIO(data), mode="rb") as reader:
                out += reader.read()
        except (OSError, EOFError, zlib.error) as e:
            raise CodecError(f"gzip decompression failed: {e}") from e

    def __repr__(self) -> str:
        return f"GzipAlgorithm(level={self.level})"


class ZstdAlgorithm(_LazyEncoderAlgorithm):
    """
    Zstandard frames. Each frame is a complete zstd frame.

    One single-threaded compression context is built once and reused; the
    library resets its state at the start of every frame.
    """

    name = "zstd"

    def __init__(self, level: int = 3):
        """
        Initialize zstd algorithm.

        Args:
            level: Compression level
        """
        super().__init__()
        self.level = level

    def _new_encoder(self) -> Any:
        return zstandard.ZstdCompressor(level=self.level, threads=0)

    def compress(self, data: BytesLike, out: bytearray) -> None:
        encoder = self._get_encoder()
        try:
            out += encoder.compress(data)
        except zstandard.ZstdError as e:
            raise CodecError(f"zstd compression failed: {e}") from e

    def decompress(self, data: BytesLike, out: bytearray) -> None:
        decoder = zstandard.ZstdDecompressor()
        try:
            with decoder.stream_reader(
                io.BytesIO(data),
                read_across_frames=True,
            ) as reader:
                out += reader.read()
        except zstandard.ZstdError as e:
            raise CodecError(f"zstd decompression failed: {e}") from e

    def __repr__(self) -> str:
        return f"ZstdAlgorithm(level={self.level})"


SUFFIX_ALGORITHMS = {
    ".gz": GzipAlgorithm,
    ".zst": ZstdAlgorithm,
}


def algorithm_for_path(path: str) -> Optional[Algorithm]:
    """
    Pick a compression algorithm from a file name suffix.

    Args:
        path: Target file path

    Returns:
        A new algorithm instance, or None when the file is not compressed
    """
    for suffix, algorithm_class in SUFFIX_ALGORITHMS.items():
        if str(path).endswith(suffix):
            return algorithm_class()
    return None
