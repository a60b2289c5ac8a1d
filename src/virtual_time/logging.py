"""
Structured logging for virtual-time.

The library never configures logging on import. Loggers returned by
:func:`get_logger` are structlog ``BoundLogger`` wrappers around the stdlib
logger of the same name, so library events stay as quiet as any stdlib
logger until the application (or test session) opts in with
:func:`configure_logging`.

Architecture:
    ::

        ┌────────────────────────────────────────────────────────────┐
        │ configure_logging(level="DEBUG", json_format=False,        │
        │                   service="virtual-time")                  │
        │                                                             │
        │     ↓                                                       │
        │ structlog configured with processor chain:                  │
        │   1. merge_contextvars                                      │
        │   2. filter_by_level                                        │
        │   3. add_log_level / add_logger_name                        │
        │   4. TimeStamper (ISO)                                      │
        │   5. add_service_metadata                                   │
        │   6. JSONRenderer (or ConsoleRenderer for dev)              │
        └────────────────────────────────────────────────────────────┘

        logger = get_logger(__name__)
        logger.debug("timer_fired", timer_id=3, wakeup=1000, now=1000)

Events emitted by the library (all at DEBUG, and only built when the
stdlib logger is enabled for DEBUG, see :func:`debug_enabled`):
    - ``timer_fired`` / ``timer_rescheduled`` / ``timer_removed`` (engine)
    - ``timer_armed`` / ``timer_disposed`` (timer handles)
    - ``clock_set`` / ``clock_advanced`` / ``clock_adjusted`` (clock)

Tags:
    logging, structlog, observability, virtual-time

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

LOGGER_NAME = "virtual_time"

# Store service name for metadata
_SERVICE_NAME = "virtual-time"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def build_processors(json_format: bool, add_timestamp: bool = True) -> list[Processor]:
    """Return the processor chain used by :func:`configure_logging`."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "virtual-time",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    structlog.configure(
        processors=build_processors(json_format, add_timestamp),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )
    logging.getLogger(LOGGER_NAME).setLevel(getattr(logging, level.upper()))


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger bound to the stdlib logger ``name``.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.wrap_logger(
        logging.getLogger(name or LOGGER_NAME),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def debug_enabled(name: str | None = None) -> bool:
    """True if a DEBUG event for ``name`` would pass the stdlib level check.

    Hot paths (the wake loop fires once per period) check this before
    emitting, so no processor runs while DEBUG is off.
    """
    return logging.getLogger(name or LOGGER_NAME).isEnabledFor(logging.DEBUG)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(test="test_catch_up"):
            clock.advance(timedelta(seconds=3))
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "build_processors",
    "get_logger",
    "debug_enabled",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
