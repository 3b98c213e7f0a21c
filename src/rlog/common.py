"""
Core log record types shared by every rlog module.

Defines the severity scale, the LogEntry record that flows through the
enrichment and sink pipelines, and the call-site SourceMetadata captured for
each entry.

Architecture:
    ::

        RLog.log(level, message, data)
              │
              ▼
        ┌────────────────────────────────────────────┐
        │ LogEntry                                   │
        │  level, message, timestamp,                │  immutable
        │  source_metadata                           │
        │  ───────────────────────────────────────── │
        │  data, encoded_data, config, context       │  enrichers may mutate
        └────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Rewrite ``level``/``message``/``timestamp`` in an enricher
    ✅ DO: Attach extra information through ``data`` or ``encoded_data``

Tags:
    log-entry, log-level, source-metadata, rlog
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any

from rlog.errors import ImmutableFieldError

if TYPE_CHECKING:
    from rlog.configuration import RLogConfig
    from rlog.context.log_context import LogContext

LogData = dict[str, Any]


class LogLevel(IntEnum):
    """Ordered severity of a log entry."""

    VERBOSE = 0
    DEBUG = 1
    INFO = 2
    WARNING = 3
    ERROR = 4

    @classmethod
    def parse(cls, value: LogLevel | int | str) -> LogLevel:
        """Coerce a level, its integer value, or its (case-insensitive) name.

        Raises:
            ValueError: If the value does not name a level
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Not a log level: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "WARN":
                name = "WARNING"
            try:
                return cls[name]
            except KeyError:
                if name.isdigit():
                    return cls(int(name))
                raise ValueError(f"Not a log level: {value!r}") from None
        raise ValueError(f"Not a log level: {value!r}")


@dataclass(frozen=True)
class SourceMetadata:
    """Best-effort call-site information for an entry.

    Attributes:
        function_name: Function the log call was made from (None at module level)
        nearest_function_name: Closest enclosing named function on the stack
        file_path: Source file of the calling frame
        line_number: Line of the log call
    """

    file_path: str
    line_number: int
    function_name: str | None = None
    nearest_function_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


_IMMUTABLE_FIELDS = frozenset({"level", "message", "timestamp", "source_metadata"})


@dataclass(eq=False)
class LogEntry:
    """One logging event.

    ``level``, ``message``, ``timestamp`` and ``source_metadata`` are fixed once
    the entry exists; reassigning them raises ImmutableFieldError. ``data``,
    ``encoded_data``, ``config`` and ``context`` belong to the enrichers.

    Attributes:
        level: Severity of the event
        message: Human-readable message
        data: Raw key/value data passed by the call site
        encoded_data: Log-safe projection of ``data``
        config: Snapshot of the effective configuration that produced the entry
        context: Correlation context active when the entry was created
        timestamp: Milliseconds since the epoch
        source_metadata: Call-site information
    """

    level: LogLevel
    message: str
    data: LogData
    encoded_data: LogData
    config: RLogConfig
    timestamp: int
    source_metadata: SourceMetadata
    context: LogContext | None = None

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _IMMUTABLE_FIELDS and name in self.__dict__:
            raise ImmutableFieldError(name)
        super().__setattr__(name, value)

    @property
    def correlation_id(self) -> str | None:
        return self.context.correlation_id if self.context is not None else None
