"""
rlog correlation contexts.

This package provides:
- LogContext: a correlation id with a start → stop lifecycle
- ContextBufferManager: buffered entries per correlation id
- with_log_context / with_log_context_async: scoped lifecycle helpers

Usage:
    from rlog.context import LogContext, with_log_context

    with LogContext.start({"suspend_context": True}) as context:
        log = context.use()
        log.info("Round started")
    # every entry of the round is delivered here, in order
"""

from rlog.context.log_context import LogContext
from rlog.context.manager import (
    ContextBufferManager,
    LogContextManager,
    get_buffer_manager,
    install_shutdown_hook,
)
from rlog.context.util import ContextCallback, with_log_context, with_log_context_async

__all__ = [
    "LogContext",
    "ContextBufferManager",
    "LogContextManager",
    "get_buffer_manager",
    "install_shutdown_hook",
    "ContextCallback",
    "with_log_context",
    "with_log_context_async",
]
