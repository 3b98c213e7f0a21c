"""
Canonical protocol definitions for rlog collaborators.

The logger core only ever calls into these shapes. Any callable that matches
works; nothing has to inherit from a base class.

Architecture:
    ::

        protocols.py
        ├── Enricher                — (entry) -> entry
        ├── Sink                    — (entry) -> bool | None, True = consumed
        ├── Serializer              — (serialization config, data) -> data
        ├── SourceMetadataProvider  — () -> SourceMetadata
        └── CorrelationGenerator    — () -> str

Guardrails:
    ❌ DON'T: Block on I/O inside a Sink or Enricher
    ✅ DO: Hand slow work to your own queue and return immediately

    ❌ DON'T: Return True from a Sink unless later sinks must be skipped
    ✅ DO: Return None to let the entry continue down the chain

Tags:
    protocol, enricher, sink, serializer, rlog, contracts
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rlog.common import LogEntry, SourceMetadata
    from rlog.configuration import SerializationConfig


@runtime_checkable
class Enricher(Protocol):
    """Pipeline stage that augments an entry before dispatch."""

    def __call__(self, entry: LogEntry) -> LogEntry: ...


@runtime_checkable
class Sink(Protocol):
    """Terminal consumer of an entry. Returning True stops the sink chain."""

    def __call__(self, entry: LogEntry) -> bool | None: ...


class Serializer(Protocol):
    """Converts arbitrary values into log-safe values. Must not raise."""

    def __call__(self, config: SerializationConfig, data: Mapping[str, Any]) -> dict[str, Any]: ...


class SourceMetadataProvider(Protocol):
    """Best-effort stack walk. Must not raise."""

    def __call__(self) -> SourceMetadata: ...


class CorrelationGenerator(Protocol):
    """Returns an id unique across concurrently live contexts."""

    def __call__(self) -> str: ...
