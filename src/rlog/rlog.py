"""
RLog - the logger facade used at call sites.

An RLog combines an effective configuration, an optional correlation context
and the level gate. Each ``log()`` call builds a LogEntry, runs it through the
enrichers, and then either hands it to the sinks or to the context buffer
manager.

Architecture:
    ::

        log(level, message, data)
          │
          ├─ level < min_log_level ?
          │     ├─ no context / no context_bypass ──► drop
          │     └─ otherwise ──► override entry
          │
          ├─ context and level >= WARNING ──► flag candidate
          │
          ├─ build entry (serialize, source metadata, config snapshot)
          ├─ enrich (may clear entry.context)
          │
          ├─ override            ──► manager.save()   (held until flagged + stopped)
          ├─ suspend / bypass    ──► manager.push()   (held until stopped)
          └─ otherwise           ──► [manager.flag()] ──► sinks

Examples:
    >>> log = RLog({"min_log_level": LogLevel.INFO}).with_tag("lobby")
    >>> log.info("Player joined", {"player": "daymon"})

Guardrails:
    ❌ DON'T: Wrap log() to swallow sink exceptions
    ✅ DO: Use a context (``with LogContext.start()`` / with_log_context) so
       the flow is still flushed if the body raises

Tags:
    logger, facade, level-gate, bypass, suspend, rlog
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from rlog.common import LogData, LogEntry, LogLevel
from rlog.configuration import ConfigLike, RLogConfig, merge_configs
from rlog.context.log_context import LogContext
from rlog.context.manager import ContextBufferManager, get_buffer_manager
from rlog.pipeline import enrich, sink
from rlog.protocols import Serializer, SourceMetadataProvider
from rlog.serialization import serialize
from rlog.sinks import console_sink
from rlog.source import extract_source_metadata


@dataclass
class RLogParameters:
    """Struct form of the RLog constructor arguments."""

    config: ConfigLike | None = None
    context: LogContext | None = None
    inherit_default: bool = True


class RLog:
    """Structured logger bound to a config and, optionally, a correlation context."""

    default: ClassVar[RLog]

    # overridable in subclasses
    serializer: ClassVar[Serializer] = staticmethod(serialize)
    source_metadata_provider: ClassVar[SourceMetadataProvider] = staticmethod(extract_source_metadata)

    def __init__(
        self,
        config: ConfigLike | None = None,
        context: LogContext | None = None,
        inherit_default: bool = True,
        *,
        manager: ContextBufferManager | None = None,
    ):
        base = RLog.default._config if inherit_default and hasattr(RLog, "default") else None
        self._config = merge_configs(base, context.config if context else None, config)
        self._manager = manager or (context.manager if context else get_buffer_manager())
        self.context: LogContext | None = None
        if context is not None:
            self.context = LogContext(context.correlation_id, self._config, manager=self._manager)

    @classmethod
    def from_parameters(cls, parameters: RLogParameters, *, manager: ContextBufferManager | None = None) -> RLog:
        return cls(parameters.config, parameters.context, parameters.inherit_default, manager=manager)

    @property
    def config(self) -> RLogConfig:
        return self._config

    # ------------------------------------------------------------------
    # Default logger
    # ------------------------------------------------------------------

    @classmethod
    def set_default_config(cls, config: ConfigLike) -> None:
        """Replace the default logger's config (sinks included)."""
        cls.default._config = merge_configs(config)

    @classmethod
    def update_default_config(cls, config: ConfigLike) -> None:
        """Merge ``config`` into the default logger's config."""
        cls.default._config = merge_configs(cls.default._config, config)

    @classmethod
    def reset_default_config(cls) -> None:
        cls.default._config = merge_configs({"sinks": [console_sink()]})

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def log(self, level: LogLevel | int, message: str, data: Mapping[str, Any] | None = None) -> None:
        """Emit an entry. See the module docstring for the routing rules.

        Inside a context with ``context_bypass`` or ``suspend_context`` every
        entry is held by the buffer manager, including ones at or above
        ``min_log_level``. Such a flow emits nothing until the context stops,
        so keep bypass contexts short-lived (one request, one round).
        """
        level = LogLevel(level)
        config = self._config

        is_override = False
        if level < config.min_log_level:
            if self.context is None or not config.context_bypass:
                return
            is_override = True

        is_flag = self.context is not None and level >= LogLevel.WARNING

        raw: LogData = dict(data) if data else {}
        entry = LogEntry(
            level=level,
            message=message,
            data=raw,
            encoded_data=self.serializer(config.serialization, data or {}),
            config=config.snapshot(),
            context=self.context,
            timestamp=time.time_ns() // 1_000_000,
            source_metadata=self.source_metadata_provider(),
        )

        entry = enrich(entry, entry.config.enrichers)
        context = entry.context

        if is_override:
            # enrichers may remove the context, which drops the override entry
            if context is not None:
                self._manager.save(entry, context)
            return

        if context is not None and (entry.config.suspend_context or entry.config.context_bypass):
            self._manager.push(entry, context)
            return

        if is_flag and context is not None:
            self._manager.flag(entry)
        sink(entry, entry.config.sinks)

    def verbose(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self.log(LogLevel.VERBOSE, message, data)

    def v(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self.log(LogLevel.VERBOSE, message, data)

    def debug(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self.log(LogLevel.DEBUG, message, data)

    def d(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self.log(LogLevel.DEBUG, message, data)

    def info(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self.log(LogLevel.INFO, message, data)

    def i(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self.log(LogLevel.INFO, message, data)

    def warning(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self.log(LogLevel.WARNING, message, data)

    def warn(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self.log(LogLevel.WARNING, message, data)

    def w(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self.log(LogLevel.WARNING, message, data)

    def error(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self.log(LogLevel.ERROR, message, data)

    def e(self, message: str, data: Mapping[str, Any] | None = None) -> None:
        self.log(LogLevel.ERROR, message, data)

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def clone(self, config: ConfigLike | None = None, context: LogContext | None = None) -> RLog:
        """A new logger of the same class with ``config`` merged over this one's."""
        return type(self)(
            merge_configs(self._config, config),
            context if context is not None else self.context,
            manager=self._manager,
        )

    def with_config(self, config: ConfigLike) -> RLog:
        return self.clone(config)

    def with_min_log_level(self, min_level: LogLevel | int | str) -> RLog:
        return self.clone({"min_log_level": min_level})

    def with_tag(self, tag: str) -> RLog:
        return self.clone({"tag": tag})

    def with_context(self, context: LogContext) -> RLog:
        return self.clone(context=context)

    def __repr__(self) -> str:
        correlation_id = self.context.correlation_id if self.context else None
        return f"RLog(min_log_level={self._config.min_log_level.name}, tag={self._config.tag!r}, correlation_id={correlation_id!r})"


RLog.default = RLog({"sinks": [console_sink()]}, inherit_default=False)

rLog = RLog
rlogger = RLog.default
