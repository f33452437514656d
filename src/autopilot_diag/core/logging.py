"""Structured logging configuration for the diagnostics tool.

Provides configurable logging with support for both JSON format
(for collection by management tooling) and console format (interactive use).
Log output goes to stderr so the report on stdout stays clean.

Example usage:
    from autopilot_diag.core.logging import configure_logging, get_logger

    configure_logging(log_format="console", log_level="DEBUG")
    logger = get_logger(__name__)
    logger.debug("Reading registry key", key=r"HKLM\\SOFTWARE\\...")
"""

import logging
import sys
from typing import Any, Literal

import structlog
from structlog.types import Processor


def configure_logging(
    log_format: Literal["json", "console"] = "console",
    log_level: str = "WARNING",
) -> None:
    """Configure structured logging for the application.

    Args:
        log_format: Output format - "json" for machine parsing, "console" for people.
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors: list[Processor] = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    level = getattr(logging, log_level.upper(), logging.WARNING)

    # stdlib LoggerFactory so loggers have a .name attribute
    # (required by add_logger_name processor)
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name, typically __name__ of the calling module.

    Returns:
        A bound logger instance with structured logging support.
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables included in every subsequent log message.

    Args:
        **kwargs: Key-value pairs to bind to the logging context.

    Example:
        bind_context(hostname="PC-0042")
        logger.info("Reading")  # Will include hostname
    """
    structlog.contextvars.bind_contextvars(**kwargs)
