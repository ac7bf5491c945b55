"""
Assembling pipelines from options.

open_writer() picks a sink (discard, stderr or a file), a compression
algorithm from the file suffix, and stacks Buffer and TickWriter on top.
setup() additionally routes the standard logging root logger into it.
"""

import logging
import mmap
import os
import stat
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from logwriter.core.algorithm import algorithm_for_path
from logwriter.core.base import WriteCloser
from logwriter.core.buffer import Buffer
from logwriter.core.compressed import CompressedWriter
from logwriter.core.sinks import DiscardWriter, FileWriter, NopCloserFile
from logwriter.core.tick import TickWriter
from logwriter.utils.config import Config, get_config
from logwriter.utils.logging import (
    ExcludeOwnRecords,
    configure_logging,
    get_logger,
)

logger = get_logger(__name__)

DISCARD_PATHS = ("", os.devnull)
STDERR_PATH = "-"


def _program_name() -> str:
    name = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else ""
    return name or "python"


@dataclass
class OpenOption:
    """
    Options for open_writer().

    Attributes:
        file_or_dir: Path to a file or directory. "" or os.devnull discards
            everything, "-" writes to stderr, an existing directory gets a
            generated file name.
        prefix: File name prefix, used only when file_or_dir is a directory
        suffix: Extra extension (".zst", ".gz" or ""), used only when
            file_or_dir is a directory
        flags: os.open() flags
        mode: Permission bits for new files
        buffer_size: Buffer size in bytes (non-positive disables buffering)
        flush_interval: Flush interval in seconds (non-positive disables
            buffering)
    """

    file_or_dir: str = STDERR_PATH
    prefix: str = ""
    suffix: str = ".zst"
    flags: int = os.O_WRONLY | os.O_APPEND | os.O_CREAT
    mode: int = 0o666
    buffer_size: int = 0
    flush_interval: float = 1.0

    @classmethod
    def from_config(cls, config: Config, base: Optional["OpenOption"] = None) -> "OpenOption":
        """
        Build options from the "writer" section of a configuration.

        Args:
            config: Loaded configuration
            base: Options used for keys missing from the configuration

        Returns:
            Options
        """
        base = base or DEFAULT_OPEN_OPTION
        return cls(
            file_or_dir=str(config.get("writer.file_or_dir", base.file_or_dir)),
            prefix=str(config.get("writer.prefix", base.prefix)),
            suffix=str(config.get("writer.suffix", base.suffix)),
            flags=int(config.get("writer.flags", base.flags)),
            mode=int(config.get("writer.mode", base.mode)),
            buffer_size=int(config.get("writer.buffer_size", base.buffer_size)),
            flush_interval=float(config.get("writer.flush_interval", base.flush_interval)),
        )


DEFAULT_OPEN_OPTION = OpenOption(
    prefix=_program_name(),
    buffer_size=mmap.PAGESIZE,
)

TearDown = Callable[[], None]


def format_timestamp(moment: datetime) -> str:
    """
    Format a timestamp as RFC 3339 with trailing fractional zeros removed.

    Args:
        moment: Timezone-aware timestamp

    Returns:
        Formatted timestamp, e.g. "2024-05-01T10:20:30.5+09:00"
    """
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    fraction = f"{moment.microsecond:06d}".rstrip("0")
    if fraction:
        text += "." + fraction
    offset = moment.strftime("%z")
    if offset in ("", "+0000"):
        return text + "Z"
    return f"{text}{offset[:3]}:{offset[3:]}"


def generate_file_name(prefix: str, suffix: str, now: Optional[datetime] = None) -> str:
    """
    Build a log file name unique to this process.

    Args:
        prefix: File name prefix
        suffix: Extra extension such as ".zst"
        now: Timestamp to embed (defaults to the current local time)

    Returns:
        File name like "app.2024-05-01T10:20:30.5Z-1234.log.zst"
    """
    now = now or datetime.now().astimezone()
    return f"{prefix}.{format_timestamp(now)}-{os.getpid()}.log{suffix}"


def open_writer(option: Optional[OpenOption] = None) -> WriteCloser:
    """
    Open a log pipeline.

    The returned writer is buffered: data written shortly before exit is
    lost unless close() is called.

    Args:
        option: Options (defaults to DEFAULT_OPEN_OPTION)

    Returns:
        Thread-safe write-closer

    Raises:
        OSError: If the target cannot be inspected or opened
    """
    option = option or DEFAULT_OPEN_OPTION

    writer = _open_fast(option)
    if writer is not None:
        return writer
    return _open_slow(option)


def _open_fast(option: OpenOption) -> Optional[WriteCloser]:
    path = option.file_or_dir
    if path in DISCARD_PATHS:
        logger.debug("Discarding log output", file_or_dir=path)
        return DiscardWriter()
    if path == STDERR_PATH:
        return NopCloserFile(sys.stderr)
    return None


def _open_slow(option: OpenOption) -> WriteCloser:
    file_path = option.file_or_dir
    try:
        is_dir = stat.S_ISDIR(os.stat(file_path).st_mode)
    except FileNotFoundError:
        # The file is created by open.
        is_dir = False

    if is_dir:
        file_path = os.path.join(
            file_path,
            generate_file_name(option.prefix, option.suffix),
        )

    return _open_suitable_writer(file_path, option)


def _open_suitable_writer(file_path: str, option: OpenOption) -> WriteCloser:
    writer: WriteCloser = FileWriter(file_path, option.flags, option.mode)

    algorithm = algorithm_for_path(file_path)
    if algorithm is not None:
        writer = CompressedWriter(writer, algorithm)

    buffered = option.buffer_size > 0 and option.flush_interval > 0
    if buffered:
        # Larger writes compress better.
        writer = Buffer(option.buffer_size, option.flush_interval, writer)
        writer = TickWriter(writer, option.flush_interval)
    else:
        # Still needed to guard the inner writers against concurrent use.
        writer = TickWriter(writer, 0)

    logger.info(
        "Opened log writer",
        path=file_path,
        algorithm=algorithm.name if algorithm is not None else "none",
        buffer_size=option.buffer_size if buffered else 0,
        flush_interval=option.flush_interval if buffered else 0,
    )
    return writer


class _TextStream:
    """Text stream adapter so logging.StreamHandler can write bytes."""

    def __init__(self, writer: WriteCloser, encoding: str = "utf-8"):
        self._writer = writer
        self.encoding = encoding

    def write(self, text: str) -> int:
        self._writer.write(text.encode(self.encoding, errors="backslashreplace"))
        return len(text)

    def flush(self) -> None:
        # Flushing is time based; see Buffer.
        pass


def setup(
    option: Optional[OpenOption] = None,
    level: Optional[int] = None,
    formatter: Optional[logging.Formatter] = None,
) -> TearDown:
    """
    Redirect the root logger to a new pipeline.

    The root logger's existing handlers are replaced and restored by the
    returned teardown function, which also closes the pipeline.

    Args:
        option: Options passed to open_writer()
        level: Root logger level to set while redirected
        formatter: Formatter for the new handler

    Returns:
        Teardown function

    Raises:
        OSError: If the pipeline cannot be opened
    """
    writer = open_writer(option)

    handler = logging.StreamHandler(_TextStream(writer))
    # The pipeline's own diagnostics must not be written into itself.
    handler.addFilter(ExcludeOwnRecords())
    if formatter is not None:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    old_handlers = root.handlers[:]
    old_level = root.level

    for old in old_handlers:
        root.removeHandler(old)
    root.addHandler(handler)
    if level is not None:
        root.setLevel(level)

    def tear_down() -> None:
        root.removeHandler(handler)
        for old in old_handlers:
            root.addHandler(old)
        root.setLevel(old_level)
        writer.close()

    return tear_down


def setup_from_config(config: Optional[Config] = None) -> TearDown:
    """
    Redirect the root logger using the "writer" and "logging" configuration.

    The "logging" section configures the pipeline's own diagnostics, which
    are written to stdout or stderr and never into the pipeline. The
    optional "writer.root_level" sets the root logger level while
    redirected.

    Args:
        config: Loaded configuration; defaults to the global get_config()

    Returns:
        Teardown function

    Raises:
        ConfigError: If the configuration is invalid
        OSError: If the pipeline cannot be opened
    """
    if config is None:
        config = get_config()
    config.validate()

    configure_logging(
        log_level=str(config.get("logging.level", "WARNING")),
        log_format=str(config.get("logging.format", "console")),
        log_output=str(config.get("logging.output", "stderr")),
    )

    root_level = config.get("writer.root_level")
    return setup(
        OpenOption.from_config(config),
        level=getattr(logging, str(root_level).upper()) if root_level else None,
    )
