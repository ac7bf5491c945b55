"""
logwriter - buffered, periodically flushed, optionally compressed log output.

A pipeline of stream wrappers between an application logger and its sink:
- Writes are buffered and flushed by size or by time
- A background thread flushes idle buffers
- Every flush becomes one independently decodable gzip or zstd frame
- Output goes to a file, stderr, or nowhere
"""

__version__ = "0.1.0"

from logwriter.core import (
    Buffer,
    CompressedWriter,
    Discard,
    GzipAlgorithm,
    NopAlgorithm,
    TickWriter,
    WriterClosedError,
    ZstdAlgorithm,
)
from logwriter.open import (
    DEFAULT_OPEN_OPTION,
    OpenOption,
    open_writer,
    setup,
    setup_from_config,
)

__all__ = [
    "Buffer",
    "CompressedWriter",
    "Discard",
    "GzipAlgorithm",
    "NopAlgorithm",
    "TickWriter",
    "WriterClosedError",
    "ZstdAlgorithm",
    "DEFAULT_OPEN_OPTION",
    "OpenOption",
    "open_writer",
    "setup",
    "setup_from_config",
]
