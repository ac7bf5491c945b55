"""
Structured logging for the pipeline's own diagnostics, using structlog.

These events describe the pipeline (assembly, flushes, latched errors). They
are never written into the pipeline itself; see logwriter.open.setup().
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

LOGGER_NAMESPACE = "logwriter"

_diagnostics_handler: Optional[logging.Handler] = None


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application context to log entries."""
    event_dict["app"] = LOGGER_NAMESPACE
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    log_output: str = "stderr",
) -> None:
    """
    Configure structured logging for the pipeline diagnostics.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_output: Output destination (stdout or stderr)
    """
    global _diagnostics_handler

    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    if _diagnostics_handler is not None:
        package_logger.removeHandler(_diagnostics_handler)

    handler = logging.StreamHandler(
        sys.stdout if log_output == "stdout" else sys.stderr
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, log_level.upper()))
    # Diagnostics stay out of the root logger, which setup() may redirect
    # into the pipeline.
    package_logger.propagate = False
    _diagnostics_handler = handler

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance.

    Events go through the stdlib logger of the same name, so they follow
    stdlib levels and handlers even before configure_logging() runs.

    Args:
        name: Logger name (typically __name__)

    Returns:
        structlog logger
    """
    # Module-level loggers are created at import time; without caching they
    # pick up a later configure_logging().
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class ExcludeOwnRecords(logging.Filter):
    """Drop stdlib records emitted by this package's own loggers."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        return not (name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."))
