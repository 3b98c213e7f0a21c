"""
Built-in sinks.

- console_sink: human-readable output on stdout/stderr (the default sink)
- structlog_sink: forwards entries into a structlog logger, so rlog output
  joins the host application's processor chain and renderers

Both return quickly and never block on anything slower than a stream write.

Usage:
    from rlog import RLog, console_sink, structlog_sink

    log = RLog({"sinks": [structlog_sink(consume=True)]})
    log.warning("Round timer drifted", {"drift_ms": 42})
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Sequence
from typing import Any

from rlog.common import LogEntry, LogLevel
from rlog.diagnostics import get_logger

FormatMethodCallback = Callable[[LogEntry], Sequence[Any]]
OutputMethodCallback = Callable[[LogEntry, Sequence[Any]], None]


def default_format_entry(entry: LogEntry) -> tuple[str, str]:
    """Render ``[LEVEL]:`` and ``tag -> message`` followed by a JSON line."""
    tag = f"{entry.config.tag} -> " if entry.config.tag is not None else ""
    details: dict[str, Any] = {
        "correlation_id": entry.correlation_id,
        "timestamp": entry.timestamp,
    }
    if entry.encoded_data:
        details["data"] = entry.encoded_data

    return (
        f"[{LogLevel(entry.level).name}]:",
        f"{tag}{entry.message}\n{json.dumps(details, default=str)}",
    )


def default_output_entry(entry: LogEntry, messages: Sequence[Any]) -> None:
    stream = sys.stderr if entry.level >= LogLevel.WARNING else sys.stdout
    print(*messages, file=stream)


def console_sink(
    format_method: FormatMethodCallback | None = None,
    output_method: OutputMethodCallback | None = None,
    min_log_level: LogLevel | None = None,
    disable: bool = False,
) -> Callable[[LogEntry], bool | None]:
    """Create a console sink.

    Args:
        format_method: Turns an entry into the values passed to ``output_method``
        output_method: Writes the formatted values
        min_log_level: Sink-local threshold on top of the logger's own
        disable: Pass every entry through untouched

    Returns:
        A sink that consumes (returns True for) every entry it prints
    """
    format_entry = format_method or default_format_entry
    output_entry = output_method or default_output_entry

    def _console_sink(entry: LogEntry) -> bool | None:
        if disable:
            return None
        if min_log_level is not None and entry.level < min_log_level:
            return None

        output_entry(entry, format_entry(entry))
        return True

    return _console_sink


_STRUCTLOG_METHODS = {
    LogLevel.VERBOSE: "debug",
    LogLevel.DEBUG: "debug",
    LogLevel.INFO: "info",
    LogLevel.WARNING: "warning",
    LogLevel.ERROR: "error",
}


def structlog_sink(logger: Any = None, consume: bool = False) -> Callable[[LogEntry], bool | None]:
    """Create a sink that re-emits entries through structlog.

    Args:
        logger: A structlog (bound) logger; defaults to ``get_logger("rlog")``
        consume: Return True so later sinks (e.g. the console) are skipped
    """
    target = logger if logger is not None else get_logger("rlog")

    def _structlog_sink(entry: LogEntry) -> bool | None:
        method = getattr(target, _STRUCTLOG_METHODS[LogLevel(entry.level)])
        fields: dict[str, Any] = {
            "rlog_level": LogLevel(entry.level).name,
            "timestamp_ms": entry.timestamp,
        }
        if entry.config.tag is not None:
            fields["tag"] = entry.config.tag
        if entry.correlation_id is not None:
            fields["correlation_id"] = entry.correlation_id
        if entry.encoded_data:
            fields["data"] = entry.encoded_data
        method(entry.message, **fields)
        return True if consume else None

    return _structlog_sink
