"""Structured logging for the service resolver.

Graph building, sorting and descriptor creation log through structlog with
snake_case event names. Each sort binds a ``sort_id`` and the number of
installers to the context, so every event of one run can be grouped.

Example:
    >>> from servicegraph.config import get_config
    >>> from servicegraph.log_config import configure_from_config, get_logger
    >>> configure_from_config(get_config())
    >>> get_logger(__name__).info("services_sorted", sorted_count=4)
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from servicegraph.config import ResolverConfig

# Callsite fields attached to every event.
_CALLSITE = (
    structlog.processors.CallsiteParameter.MODULE,
    structlog.processors.CallsiteParameter.FUNC_NAME,
    structlog.processors.CallsiteParameter.LINENO,
)


def _renderer(json_logs: bool) -> Any:
    if json_logs:
        # Report markers such as "➜" stay readable in JSON output.
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(
        colors=False,
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """Route structlog events through the standard library root logger.

    Args:
        level: Level name, case insensitive (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render JSON lines when True, plain key=value text otherwise

    Raises:
        ValueError: If ``level`` is not a logging level name
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        msg = f"Invalid log level: {level}"
        raise ValueError(msg)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)
    logging.getLogger().setLevel(numeric_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(parameters=_CALLSITE),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(json_logs),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def configure_from_config(config: "ResolverConfig") -> None:
    """Configure logging from the ``logging_level`` and ``json_logs`` settings."""
    configure_logging(level=config.logging_level, json_logs=config.json_logs)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger named after the calling module."""
    return structlog.get_logger(name)


def bind_correlation_id(correlation_id: str) -> None:
    """Tag every following event with ``correlation_id``.

    Applications use this to group the sorts of one startup together.
    """
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def unbind_correlation_id() -> None:
    """Remove the correlation ID from the logging context."""
    structlog.contextvars.unbind_contextvars("correlation_id")


@contextmanager
def bound_context(**values: Any) -> Iterator[None]:
    """Bind context variables for the duration of a block.

    Values bound under the same keys before entering are restored on exit,
    so nested blocks do not erase their callers' context.

    Example:
        >>> with bound_context(sort_id="3f2a", installer_count=12):
        ...     logger.info("sort_complete")
    """
    previous = {
        key: value
        for key, value in structlog.contextvars.get_contextvars().items()
        if key in values
    }
    structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*values)
        if previous:
            structlog.contextvars.bind_contextvars(**previous)
