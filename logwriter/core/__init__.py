"""
The write pipeline.

Stages, from the application down to the sink:
- TickWriter: thread safety and periodic flush triggering
- Buffer: size/time triggered buffering with a sticky error state
- CompressedWriter: one compressed frame per write
- Algorithm: pluggable frame codecs (none, gzip, zstd)
"""

from logwriter.core.algorithm import (
    Algorithm,
    GzipAlgorithm,
    NopAlgorithm,
    ZstdAlgorithm,
    algorithm_for_path,
)
from logwriter.core.base import WriteCloser
from logwriter.core.buffer import Buffer, BufferState
from logwriter.core.compressed import CompressedWriter
from logwriter.core.errors import (
    CodecError,
    ConfigError,
    LogWriterError,
    ShortWriteError,
    WriterClosedError,
)
from logwriter.core.sinks import Discard, DiscardWriter, FileWriter, NopCloserFile
from logwriter.core.tick import TickWriter

__all__ = [
    # Algorithms
    "Algorithm",
    "NopAlgorithm",
    "GzipAlgorithm",
    "ZstdAlgorithm",
    "algorithm_for_path",
    # Writers
    "WriteCloser",
    "Buffer",
    "BufferState",
    "CompressedWriter",
    "TickWriter",
    # Sinks
    "Discard",
    "DiscardWriter",
    "FileWriter",
    "NopCloserFile",
    # Errors
    "LogWriterError",
    "WriterClosedError",
    "ShortWriteError",
    "CodecError",
    "ConfigError",
]
