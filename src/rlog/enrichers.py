"""Built-in enrichers."""

from __future__ import annotations

from rlog.common import LogEntry


def file_tag_enricher(entry: LogEntry) -> LogEntry:
    """Tag untagged entries with the file they were logged from."""
    if entry.config.tag is None:
        entry.config.tag = entry.source_metadata.file_path
    return entry


def function_tag_enricher(entry: LogEntry) -> LogEntry:
    """Tag untagged entries with the nearest named function on the stack."""
    if entry.config.tag is None:
        entry.config.tag = entry.source_metadata.nearest_function_name
    return entry


def source_metadata_enricher(entry: LogEntry) -> LogEntry:
    """Expose the call site in ``encoded_data`` so sinks render it."""
    entry.encoded_data["source_metadata"] = entry.source_metadata.to_dict()
    return entry
