"""
rlog Diagnostics - the library's own side channel.

rlog never raises for configuration mistakes. An entry logged with no sinks,
or a context flush that finds an empty buffer, is reported here instead, as a
structlog event, so that the host application's logging setup decides where
it ends up.

Architecture:
    ::

        Configuration Flow:
        ┌────────────────────────────────────────────────────────────┐
        │ configure_logging(level="WARNING", json_format=True)       │
        │                                                            │
        │     ↓                                                      │
        │ structlog configured with processor chain:                 │
        │   1. TimeStamper                                           │
        │   2. add_log_level / add_logger_name                       │
        │   3. StackInfoRenderer                                     │
        │   4. add_service_metadata                                  │
        │   5. add_rlog_diagnostic (rlog.diagnostic, rlog.category)  │
        │   6. JSONRenderer (or ConsoleRenderer for dev)             │
        └────────────────────────────────────────────────────────────┘

        Usage Flow:
        ┌────────────────────────────────────────────────────────────┐
        │ logger = get_logger(__name__)                              │
        │ logger.warning("rlog.entry_missing_sinks", message="hi")   │
        └────────────────────────────────────────────────────────────┘

Guardrails:
    - Diagnostics are warnings, never exceptions
    - Event names are dotted and prefixed with ``rlog.``
    - configure_logging() is optional; structlog defaults work out of the box
    - Level and format default to RLOG_DIAGNOSTICS_LEVEL / RLOG_DIAGNOSTICS_JSON

Tags:
    logging, structlog, diagnostics, side-channel, rlog
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from rlog.errors import ErrorCategory
from rlog.settings import get_settings

_SERVICE_NAME = "rlog"

# diagnostics that point at a caller's configuration; everything else is INTERNAL
_CONFIG_DIAGNOSTICS = frozenset(
    {
        "entry_missing_sinks",
        "context_flush_empty",
        "config_invalid_min_log_level",
        "config_invalid_serialization",
    }
)


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all diagnostics."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _add_rlog_diagnostic(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Split ``rlog.*`` event names into a diagnostic code and its category.

    ``rlog.context_flush_empty`` gains ``rlog.diagnostic="context_flush_empty"``
    and ``rlog.category="CONFIG"``. Host events pass through untouched.
    """
    event = event_dict.get("event")
    if not isinstance(event, str) or not event.startswith("rlog."):
        return event_dict

    code = event[len("rlog."):]
    category = ErrorCategory.CONFIG if code in _CONFIG_DIAGNOSTICS else ErrorCategory.INTERNAL
    event_dict.setdefault("rlog.diagnostic", code)
    event_dict.setdefault("rlog.category", category.value)
    return event_dict


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
    service: str = "rlog",
    add_timestamp: bool = True,
) -> None:
    """Configure structured output for rlog diagnostics.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR); None reads
            ``RLOG_DIAGNOSTICS_LEVEL``
        json_format: True for JSON, False for console, None reads
            ``RLOG_DIAGNOSTICS_JSON`` and falls back to JSON if not a tty
        service: Service name to include in diagnostics
        add_timestamp: Include ISO timestamp in diagnostics

    Example:
        configure_logging(level="WARNING", json_format=True, service="arena-server")
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    settings = get_settings()
    if level is None:
        level = settings.diagnostics_level
    if json_format is None:
        json_format = settings.diagnostics_json
    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        _add_service_metadata,
        _add_rlog_diagnostic,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


__all__ = [
    "configure_logging",
    "get_logger",
]
