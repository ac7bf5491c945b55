"""Shared test writers."""

import logging
import tempfile
from pathlib import Path

import pytest
import structlog

from logwriter.utils import logging as logwriter_logging


class RecordingWriter:
    """
    Writer that records every call.

    actions holds ("write", bytes) and ("close", None) tuples in call order.
    """

    def __init__(self, short_by: int = 0, fail_with: Exception = None):
        self.actions = []
        self.short_by = short_by
        self.fail_with = fail_with

    def write(self, data) -> int:
        if self.fail_with is not None:
            raise self.fail_with
        self.actions.append(("write", bytes(data)))
        return max(len(data) - self.short_by, 0)

    def close(self) -> None:
        self.actions.append(("close", None))

    def writes(self):
        return [data for action, data in self.actions if action == "write"]


class FakeClock:
    """Controllable monotonic clock in seconds."""

    def __init__(self, start: float = 1000.0):
        self.start = start
        self.elapsed = 0.0

    def __call__(self) -> float:
        return self.start + self.elapsed


@pytest.fixture
def recorder():
    """Create a recording writer."""
    return RecordingWriter()


@pytest.fixture
def clock():
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_recorder():
    """Factory for recording writers with injected failures."""
    return RecordingWriter


@pytest.fixture
def restore_logging():
    """Restore structlog, root and package logger state after the test."""
    root = logging.getLogger()
    package = logging.getLogger(logwriter_logging.LOGGER_NAMESPACE)
    saved = [
        (logger, logger.handlers[:], logger.level, logger.propagate)
        for logger in (root, package)
    ]
    diagnostics_handler = logwriter_logging._diagnostics_handler
    yield
    structlog.reset_defaults()
    for logger, handlers, level, propagate in saved:
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate
    logwriter_logging._diagnostics_handler = diagnostics_handler
