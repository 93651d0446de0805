"""
Structured Logging Module
=========================

Provides structured logging using structlog with JSON output for production
and colored console output for development.

Usage:
    from devicefarm_runner.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Upload succeeded", upload="app.apk", status="SUCCEEDED")
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import Processor

from devicefarm_runner import __version__
from devicefarm_runner.config import get_settings


def add_app_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Add application context to log entries.

    Args:
        logger: The wrapped logger object.
        method_name: The name of the log method called.
        event_dict: The event dictionary to process.

    Returns:
        The modified event dictionary.
    """
    event_dict["app"] = "devicefarm-runner"
    event_dict["version"] = __version__
    return event_dict


def setup_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Configure structured logging for the application.

    Sets up structlog with appropriate processors based on the environment:
    - Development: Colored console output with pretty printing
    - Production: JSON output for log aggregation

    This should be called once at application startup.

    Args:
        level: Override for the configured log level.
        json_logs: Force JSON (True) or console (False) rendering.
    """
    settings = get_settings()
    log_level = getattr(logging, (level or settings.logging.log_level).upper())
    use_json = (not settings.logging.debug) if json_logs is None else json_logs

    # Shared processors for all environments
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
    ]

    if not use_json:
        # Development: Pretty console output
        processors: list[Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.rich_traceback,
            ),
        ]
    else:
        # Production: JSON output
        processors = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # Also configure standard library logging for third-party libs
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    # Reduce noise from common libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: The name for the logger, typically __name__.

    Returns:
        A bound structlog logger instance.
    """
    return structlog.get_logger(name)


class LogContext:
    """
    Context manager for adding temporary context to logs.

    Usage:
        with LogContext(run_arn="arn:aws:devicefarm:..."):
            logger.info("Collecting artifacts")  # Will include run_arn
    """

    def __init__(self, **kwargs: Any) -> None:
        """
        Initialize log context.

        Args:
            **kwargs: Key-value pairs to add to log context.
        """
        self.context = kwargs
        self._token: Any = None

    def __enter__(self) -> "LogContext":
        """Enter the context, binding variables."""
        self._token = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the context, unbinding variables."""
        structlog.contextvars.unbind_contextvars(*self.context.keys())
