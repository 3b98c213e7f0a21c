"""
Structured error types for rlog.

rlog raises very little. Logging must never take down the caller, so
configuration problems are reported as warnings on the diagnostics side
channel and serialization failures degrade to placeholders. The errors below
are reserved for programming-contract violations, where failing fast is the
only useful signal.

Manifesto:
    - **Fail fast on misuse:** A dead context or a malformed helper call is a bug
    - **Never fail on data:** Values that cannot be encoded become placeholders
    - **Rich context:** Errors carry the correlation id they relate to

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        RLogError                             │
        │           (category, correlation_id, cause)                  │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  DeadContextError    InvalidContextArgumentsError            │
        │  (MISUSE)            (MISUSE, TypeError)                     │
        │                                                              │
        │  ImmutableFieldError                                         │
        │  (MISUSE, AttributeError)                                    │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = DeadContextError("LogContext.use", correlation_id="abc")
    >>> error.category
    <ErrorCategory.MISUSE: 'MISUSE'>
    >>> error.to_dict()["correlation_id"]
    'abc'

Guardrails:
    ❌ DON'T: Catch DeadContextError and carry on logging
    ✅ DO: Fix the call site so it stops using the context after ``stop()``

Tags:
    error-handling, exception-hierarchy, misuse, rlog
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification."""

    MISUSE = "MISUSE"        # Programming-contract violation
    CONFIG = "CONFIG"        # Invalid configuration
    INTERNAL = "INTERNAL"    # Bugs, unexpected state


class RLogError(Exception):
    """
    Base exception for all rlog errors.

    Subclasses set ``default_category``; instances may override it and attach
    the correlation id of the flow they were raised for.

    Examples:
        >>> error = RLogError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> RLogError("boom", correlation_id="abc").to_dict()["message"]
        'boom'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        correlation_id: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.correlation_id = correlation_id
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.correlation_id is not None:
            result["correlation_id"] = self.correlation_id
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class DeadContextError(RLogError):
    """A stopped LogContext was used again."""

    default_category = ErrorCategory.MISUSE

    def __init__(self, operation: str, *, correlation_id: str | None = None):
        super().__init__(
            f"Attempted to use a dead LogContext via `{operation}`",
            correlation_id=correlation_id,
        )
        self.operation = operation


class InvalidContextArgumentsError(RLogError, TypeError):
    """A context helper was called with an unsupported argument shape."""

    default_category = ErrorCategory.MISUSE

    def __init__(self, helper: str, *args: Any):
        rendered = "\n".join(f'arg{i}:"{arg!r}"' for i, arg in enumerate(args, start=1))
        super().__init__(f"{helper} called with invalid arguments:\n{rendered}")
        self.helper = helper


class ImmutableFieldError(RLogError, AttributeError):
    """An immutable LogEntry field was reassigned."""

    default_category = ErrorCategory.MISUSE

    def __init__(self, field_name: str):
        super().__init__(f"LogEntry.{field_name} cannot be changed once the entry exists")
        self.field_name = field_name
