"""Structured logging configuration using structlog.

Every pipeline run binds a short ``run_id`` and the source ``image`` name
into structlog's context variables, and each cell binds its ``cell``
index while it is being extracted and encoded. Logs go to stderr so that
command output on stdout (including ``--json`` summaries) stays clean.
"""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import cast

import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars
from structlog.types import Processor

from gridslice.config import settings

CORRELATION_KEYS = ("run_id", "image", "cell")


def new_run_id() -> str:
    """Short random identifier for one pipeline run."""
    return uuid.uuid4().hex[:12]


def set_correlation_context(
    run_id: str | None = None,
    image: str | None = None,
    cell: int | None = None,
) -> None:
    """Bind correlation IDs for the current async context.

    Args:
        run_id: Unique identifier for the pipeline run
        image: Original filename of the image being sliced
        cell: Cell index currently being processed
    """
    values = {"run_id": run_id, "image": image, "cell": cell}
    bound = {key: value for key, value in values.items() if value is not None}
    if bound:
        bind_contextvars(**bound)


def clear_cell_context() -> None:
    """Forget the current cell index while keeping the run context."""
    unbind_contextvars("cell")


def clear_correlation_context() -> None:
    """Remove every correlation ID from the current context."""
    unbind_contextvars(*CORRELATION_KEYS)


@contextmanager
def run_context(image: str, run_id: str | None = None) -> Iterator[str]:
    """Bind run_id and image for the duration of one run.

    Yields:
        The run_id in effect.
    """
    run_id = run_id or new_run_id()
    set_correlation_context(run_id=run_id, image=image)
    try:
        yield run_id
    finally:
        clear_correlation_context()


def configure_logging(
    level: str | None = None,
    log_format: str | None = None,
) -> None:
    """Configure structlog with the specified settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to settings.LOG_LEVEL.
        log_format: Output format ("console" or "json").
                    Defaults to settings.LOG_FORMAT.
    """
    level = level or settings.LOG_LEVEL
    log_format = log_format or settings.LOG_FORMAT

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # force rebinds the handler to the current sys.stderr on every call
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
        force=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Args:
        name: Logger name. If None, uses the calling module's name.

    Returns:
        A bound structlog logger instance.
    """
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
