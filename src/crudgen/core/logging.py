"""
Structured logging for crudgen.

Library modules log key/value events through :func:`get_logger`; they
never configure output.  The CLI (or the host application) calls
:func:`configure_logging` once.

Events emitted by the library::

    descriptor.built       debug    type_name, table, fields
    descriptor.rejected    warning  type_name, kinds
    operation.executed     debug    operation, table
    operation.failed       warning  operation, table, kind, error
    operation.rollback_failed  warning
    schema.verified / schema.mismatch / schema.check_failed

A :class:`~crudgen.core.errors.CrudError` passed as a value (``error=err``)
is expanded to its ``to_dict()`` form, so JSON output keeps the kind and
context instead of a bare string.

Examples:
    >>> from crudgen.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=True)
    >>> get_logger(__name__).debug("descriptor.built", table="users", fields=4)

Tags:
    logging, structlog, crudgen
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from crudgen.core.errors import CrudError


def _expand_crud_errors(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace CrudError values with their structured form."""
    for key, value in event_dict.items():
        if isinstance(value, CrudError):
            event_dict[key] = value.to_dict()
    return event_dict


def _service(name: str) -> Processor:
    def add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", name)
        return event_dict

    return add_service


def _processors(json_format: bool, service: str, colors: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        _service(service),
        structlog.dev.set_exc_info,
    ]
    if json_format:
        chain += [
            _expand_crud_errors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=colors))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "crudgen",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog output.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, console when False, auto (JSON
            unless ``stream`` is a tty) when None
        service: Value of the ``service.name`` key
        stream: Destination; stderr by default so command output on stdout
            stays machine-readable
    """
    stream = stream or sys.stderr
    tty = stream.isatty()
    if json_format is None:
        json_format = not tty

    structlog.configure(
        processors=_processors(json_format, service, colors=tty),
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Structured logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach keys (e.g. ``command="check"``) to every later event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = ["configure_logging", "get_logger", "bind_context", "clear_context"]
