"""
Exceptions raised by the write pipeline.

Inner sink failures are not wrapped: they propagate as whatever the sink
raised (usually OSError).
"""


class LogWriterError(Exception):
    """Base class for pipeline errors."""
    pass


class WriterClosedError(LogWriterError, ValueError):
    """Raised when writing to or closing an already closed writer."""

    def __init__(self, message: str = "write to closed writer"):
        super().__init__(message)


class ShortWriteError(LogWriterError, IOError):
    """Raised when the inner writer accepted fewer bytes than requested."""

    def __init__(self, expected: int, written: int):
        super().__init__(
            f"Short write: expected {expected} bytes, wrote {written} bytes"
        )
        self.expected = expected
        self.written = written


class CodecError(LogWriterError):
    """Raised when a compression codec fails to build, encode or decode."""
    pass


class ConfigError(LogWriterError, ValueError):
    """Raised when configuration values cannot be used."""
    pass
