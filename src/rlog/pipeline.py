"""
Enrichment and sink dispatch pipelines.

Architecture:
    ::

        entry ──► enricher 1 ──► enricher 2 ──► ... ──► enriched entry
                                                            │
                  ┌─────────────────────────────────────────┘
                  ▼
              sink 1 ──(None)──► sink 2 ──(True)──► stop
                                    ▲
                                    └── later sinks never see the entry

Both pipelines are synchronous and let exceptions from enrichers and sinks
propagate to the caller of ``RLog.log()``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from rlog.diagnostics import get_logger

if TYPE_CHECKING:
    from rlog.common import LogEntry
    from rlog.protocols import Enricher, Sink

logger = get_logger(__name__)


def enrich(entry: LogEntry, enrichers: Sequence[Enricher]) -> LogEntry:
    """Fold ``entry`` through ``enrichers`` in order."""
    for enricher in enrichers:
        entry = enricher(entry)
    return entry


def sink(entry: LogEntry, sinks: Sequence[Sink]) -> None:
    """Offer ``entry`` to each sink until one returns True.

    An empty sink list is almost always a misconfiguration; it is reported on
    the diagnostics channel and the entry is dropped.
    """
    if not sinks:
        logger.warning(
            "rlog.entry_missing_sinks",
            message=entry.message,
            correlation_id=entry.correlation_id,
        )
        return

    for consumer in sinks:
        if consumer(entry) is True:
            break
