"""
Context Buffer Manager - per-correlation-id buffering and flushing.

Entries logged inside a correlation context can be held back instead of being
dispatched right away. This module owns that held-back state and decides,
when a context stops, what gets delivered.

Manifesto:
    A production server usually runs at WARNING. When something goes wrong,
    the DEBUG trail leading up to it is exactly what is missing. Bypass
    buffering keeps that trail per flow and only pays it out when the flow
    is flagged; suspend buffering holds a whole flow back so it arrives as
    one ordered burst.

    - **Per-flow:** State is keyed by correlation id, never shared across flows
    - **FIFO:** A flow's entries are delivered in arrival order
    - **Exactly once:** Flushing purges the id, whatever was delivered
    - **Nothing lost at exit:** force_flush() drains every buffered flow

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                 ContextBufferManager (RLock)                    │
        │  ┌───────────────────────────────────────────────────────────┐  │
        │  │ flagged:  set[correlation_id]                             │  │
        │  │ pending:  dict[correlation_id, list[LogEntry]]  (bypass)  │  │
        │  │ promised: dict[correlation_id, list[LogEntry]]  (suspend) │  │
        │  └───────────────────────────────────────────────────────────┘  │
        └─────────────────────────────────────────────────────────────────┘

        save(entry)   → pending            (+ flagged if level >= WARNING)
        push(entry)   → pending + promised (+ flagged if level >= WARNING)
        flag(entry)   → flagged

        flush(id):
          flagged?          → deliver pending[id]  (warn when nothing is pending)
          elif promised[id] → deliver promised[id]
          else              → deliver nothing
          purge id from flagged, pending, promised

Examples:
    >>> manager = ContextBufferManager()
    >>> manager.flush("never-used")
    0

Guardrails:
    ❌ DON'T: Call clear() outside tests; it discards entries silently
    ✅ DO: Use force_flush() to drain at shutdown

Performance:
    - save/push/flag: O(1) amortised under one lock
    - flush: O(n) in the flow's buffered entries; sinks run outside the lock

Tags:
    context, correlation, buffering, flush, rlog
"""

from __future__ import annotations

import atexit
import threading
from typing import TYPE_CHECKING

from rlog.common import LogEntry, LogLevel
from rlog.diagnostics import get_logger
from rlog.pipeline import sink
from rlog.settings import get_settings

if TYPE_CHECKING:
    from rlog.context.log_context import LogContext

logger = get_logger(__name__)


def _resolve_id(context: LogContext | str) -> str:
    return context if isinstance(context, str) else context.correlation_id


class ContextBufferManager:
    """Thread-safe registry of buffered entries keyed by correlation id.

    Use the process-wide instance from get_buffer_manager() (or the
    LogContextManager static interface) unless a test or an embedded host
    needs an isolated one.
    """

    def __init__(self) -> None:
        self._flagged: set[str] = set()
        self._pending: dict[str, list[LogEntry]] = {}
        self._promised: dict[str, list[LogEntry]] = {}
        self._lock = threading.RLock()

    def save(self, entry: LogEntry, context: LogContext) -> None:
        """Buffer an entry until its context is flagged and stopped."""
        correlation_id = context.correlation_id
        with self._lock:
            self._pending.setdefault(correlation_id, []).append(entry)
            if entry.level >= LogLevel.WARNING:
                self._flagged.add(correlation_id)

    def push(self, entry: LogEntry, context: LogContext) -> None:
        """Buffer an entry for unconditional delivery when its context stops."""
        with self._lock:
            self.save(entry, context)
            self._promised.setdefault(context.correlation_id, []).append(entry)

    def flag(self, entry: LogEntry) -> None:
        """Mark the entry's context so its full history is delivered on flush."""
        if entry.context is None:
            return
        with self._lock:
            self._flagged.add(entry.context.correlation_id)

    def _take(self, correlation_id: str) -> list[LogEntry] | None:
        with self._lock:
            if correlation_id in self._flagged:
                entries = self._pending.get(correlation_id, [])
            else:
                entries = self._promised.get(correlation_id)

            self._flagged.discard(correlation_id)
            self._pending.pop(correlation_id, None)
            self._promised.pop(correlation_id, None)
            return entries

    def flush(self, context: LogContext | str) -> int:
        """Deliver a context's buffered entries and forget the context.

        Args:
            context: The context or its correlation id

        Returns:
            Number of entries handed to sinks
        """
        correlation_id = _resolve_id(context)
        entries = self._take(correlation_id)
        if entries is None:
            return 0

        if not entries:
            logger.warning("rlog.context_flush_empty", correlation_id=correlation_id)
            return 0

        for entry in entries:
            sink(entry, entry.config.sinks)
        return len(entries)

    def force_flush(self) -> int:
        """Flag and flush every context that still holds entries."""
        with self._lock:
            correlation_ids = list(self._pending)
            # flagged ids with nothing pending were dispatched already
            self._flagged.intersection_update(correlation_ids)
            self._flagged.update(correlation_ids)

        delivered = 0
        for correlation_id in correlation_ids:
            delivered += self.flush(correlation_id)

        if delivered:
            logger.debug("rlog.force_flush", contexts=len(correlation_ids), entries=delivered)
        return delivered

    def clear(self) -> None:
        """Drop all buffered state without delivering it (mainly for testing)."""
        with self._lock:
            self._flagged.clear()
            self._pending.clear()
            self._promised.clear()

    def is_flagged(self, context: LogContext | str) -> bool:
        with self._lock:
            return _resolve_id(context) in self._flagged

    def pending_count(self, context: LogContext | str) -> int:
        with self._lock:
            return len(self._pending.get(_resolve_id(context), ()))

    def promised_count(self, context: LogContext | str) -> int:
        with self._lock:
            return len(self._promised.get(_resolve_id(context), ()))

    def active_ids(self) -> list[str]:
        """Correlation ids that currently hold any buffered state."""
        with self._lock:
            return sorted(set(self._pending) | set(self._promised) | self._flagged)


# Global manager instance
_manager = ContextBufferManager()


def get_buffer_manager() -> ContextBufferManager:
    return _manager


_installed_hooks: set[int] = set()


def install_shutdown_hook(manager: ContextBufferManager | None = None) -> None:
    """Drain ``manager`` (default: the global one) when the interpreter exits.

    Installing twice for the same manager is a no-op.
    """
    target = manager or _manager
    if id(target) in _installed_hooks:
        return
    _installed_hooks.add(id(target))
    atexit.register(target.force_flush)


class LogContextManager:
    """Static interface over the process-wide ContextBufferManager."""

    @staticmethod
    def save(entry: LogEntry, context: LogContext) -> None:
        _manager.save(entry, context)

    @staticmethod
    def push(entry: LogEntry, context: LogContext) -> None:
        _manager.push(entry, context)

    @staticmethod
    def flag(entry: LogEntry) -> None:
        _manager.flag(entry)

    @staticmethod
    def flush(context: LogContext | str) -> int:
        return _manager.flush(context)

    @staticmethod
    def force_flush() -> int:
        return _manager.force_flush()

    @staticmethod
    def clear() -> None:
        _manager.clear()


if get_settings().flush_on_exit:
    install_shutdown_hook(_manager)
