"""Run a callback inside a fresh LogContext that is always stopped afterwards."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from rlog.configuration import RLogConfig
from rlog.context.log_context import LogContext
from rlog.context.manager import ContextBufferManager
from rlog.errors import InvalidContextArgumentsError

R = TypeVar("R")

ContextCallback = Callable[[LogContext], R]


def _split_arguments(helper: str, arg1: Any, arg2: Any) -> tuple[Any, Callable[[LogContext], Any]]:
    if callable(arg1) and arg2 is None and not isinstance(arg1, RLogConfig):
        return None, arg1
    if (arg1 is None or isinstance(arg1, (Mapping, RLogConfig))) and callable(arg2):
        return arg1, arg2
    raise InvalidContextArgumentsError(helper, arg1, arg2)


def with_log_context(
    arg1: Mapping[str, Any] | RLogConfig | ContextCallback[R] | None,
    arg2: ContextCallback[R] | None = None,
    *,
    manager: ContextBufferManager | None = None,
) -> R:
    """
    Call ``callback(context)`` inside a new context and stop it afterwards.

    Accepts ``with_log_context(callback)`` or ``with_log_context(config, callback)``.
    The context is stopped (and flushed) even if the callback raises; the
    exception still propagates.

    Usage:
        result = with_log_context({"suspend_context": True}, lambda ctx: handle(ctx))
    """
    config, callback = _split_arguments("with_log_context", arg1, arg2)
    context = LogContext.start(config, manager=manager)
    try:
        return callback(context)
    finally:
        context.stop()


async def with_log_context_async(
    arg1: Mapping[str, Any] | RLogConfig | Callable[[LogContext], Awaitable[R]] | None,
    arg2: Callable[[LogContext], Awaitable[R]] | None = None,
    *,
    manager: ContextBufferManager | None = None,
) -> R:
    """Async variant of with_log_context for coroutine callbacks."""
    config, callback = _split_arguments("with_log_context_async", arg1, arg2)
    context = LogContext.start(config, manager=manager)
    try:
        return await callback(context)
    finally:
        context.stop()
