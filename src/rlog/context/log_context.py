"""
Correlation contexts: one handle per logical flow.

A LogContext ties every entry of a flow (a match, a player session, a request
handled by the game server) to one correlation id, carries the configuration
baseline for loggers used inside it, and, when stopped, flushes whatever the
buffer manager held back for it.

Lifecycle:
    ::

        LogContext.start(config) ──► active ──stop()──► dead
                                       │                 │
                          use() / with_config()     use() / with_config()
                                       │                 │
                                       ▼                 ▼
                                RLog / sibling     DeadContextError

Usage:
    with LogContext.start({"context_bypass": True}) as context:
        log = context.use({"min_log_level": LogLevel.WARNING})
        log.debug("Loading map", {"map": "arena"})
        log.warning("Spawn point missing")
    # stopped here: the debug trail is delivered because a warning flagged it

Design choice: explicit handle, not a contextvar
- Entries reference the context they were created in, after the scope ends
- Siblings (with_config) share an id but not a config
- Flows can interleave on one thread without cross-contamination
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from rlog.configuration import ConfigLike, RLogConfig, merge_configs
from rlog.context.manager import ContextBufferManager, get_buffer_manager
from rlog.errors import DeadContextError
from rlog.source import generate_correlation_id

if TYPE_CHECKING:
    from rlog.rlog import RLog


def _generate_correlation_id(config: RLogConfig) -> str:
    if config.correlation_generator is not None:
        return config.correlation_generator()
    return generate_correlation_id()


class LogContext:
    """A correlation id, its config baseline, and a start → stop lifecycle."""

    def __init__(
        self,
        correlation_id: str,
        config: RLogConfig,
        *,
        manager: ContextBufferManager | None = None,
    ):
        self.correlation_id = correlation_id
        self.config = config
        self.manager = manager or get_buffer_manager()
        self._dead = False
        self._lock = threading.Lock()

    @property
    def is_dead(self) -> bool:
        return self._dead

    @classmethod
    def start(
        cls,
        config: ConfigLike | None = None,
        *,
        manager: ContextBufferManager | None = None,
    ) -> LogContext:
        """Open a new flow with a freshly generated correlation id."""
        final_config = merge_configs(config)
        return cls(_generate_correlation_id(final_config), final_config, manager=manager)

    def with_config(self, config: ConfigLike | None) -> LogContext:
        """Sibling context: same correlation id, config merged with ``config``."""
        if self._dead:
            raise DeadContextError("LogContext.with_config", correlation_id=self.correlation_id)
        return LogContext(self.correlation_id, merge_configs(self.config, config), manager=self.manager)

    def use(self, config: ConfigLike | None = None) -> RLog:
        """A logger bound to this context."""
        if self._dead:
            raise DeadContextError("LogContext.use", correlation_id=self.correlation_id)

        from rlog.rlog import RLog

        return RLog(config, self, manager=self.manager)

    def stop(self) -> None:
        """End the flow and flush its buffered entries. Repeated calls are no-ops."""
        with self._lock:
            if self._dead:
                return
            self._dead = True
        self.manager.flush(self.correlation_id)

    def __enter__(self) -> LogContext:
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()

    async def __aenter__(self) -> LogContext:
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.stop()

    def __repr__(self) -> str:
        state = "dead" if self._dead else "active"
        return f"LogContext({self.correlation_id!r}, {state})"
