"""
rlog - structured, context-aware logging for game-server scripts.

This package provides:
- RLog: leveled logging with key/value data, enrichers and sinks
- LogContext: correlation contexts that can defer or filter a flow's entries
- merge_configs: layered configuration with per-instance tags
- Built-in console/structlog sinks and tag/source enrichers

Usage:
    from rlog import LogContext, LogLevel, RLog

    log = RLog({"min_log_level": LogLevel.INFO})
    log.info("Server started", {"port": 7777})

    with LogContext.start({"context_bypass": True}) as context:
        match_log = context.use({"min_log_level": LogLevel.WARNING})
        match_log.debug("Spawning wave", {"wave": 3})
        match_log.error("Wave spawner crashed")
"""

from rlog.common import LogData, LogEntry, LogLevel, SourceMetadata
from rlog.configuration import (
    PartialRLogConfig,
    RLogConfig,
    SerializationConfig,
    default_rlog_config,
    merge_configs,
)
from rlog.context import (
    ContextBufferManager,
    ContextCallback,
    LogContext,
    LogContextManager,
    get_buffer_manager,
    install_shutdown_hook,
    with_log_context,
    with_log_context_async,
)
from rlog.diagnostics import configure_logging
from rlog.enrichers import file_tag_enricher, function_tag_enricher, source_metadata_enricher
from rlog.errors import (
    DeadContextError,
    ErrorCategory,
    ImmutableFieldError,
    InvalidContextArgumentsError,
    RLogError,
)
from rlog.pipeline import enrich, sink
from rlog.rlog import RLog, RLogParameters, rLog, rlogger
from rlog.serialization import encode_to_json_or_string, serialize
from rlog.settings import RLogSettings, get_settings
from rlog.sinks import console_sink, structlog_sink

__version__ = "0.1.0"

__all__ = [
    # Records
    "LogData",
    "LogEntry",
    "LogLevel",
    "SourceMetadata",
    # Configuration
    "PartialRLogConfig",
    "RLogConfig",
    "SerializationConfig",
    "default_rlog_config",
    "merge_configs",
    "RLogSettings",
    "get_settings",
    # Contexts
    "ContextBufferManager",
    "ContextCallback",
    "LogContext",
    "LogContextManager",
    "get_buffer_manager",
    "install_shutdown_hook",
    "with_log_context",
    "with_log_context_async",
    # Logger
    "RLog",
    "RLogParameters",
    "rLog",
    "rlogger",
    # Pipelines
    "enrich",
    "sink",
    "serialize",
    "encode_to_json_or_string",
    # Built-ins
    "console_sink",
    "structlog_sink",
    "file_tag_enricher",
    "function_tag_enricher",
    "source_metadata_enricher",
    # Diagnostics and errors
    "configure_logging",
    "RLogError",
    "ErrorCategory",
    "DeadContextError",
    "InvalidContextArgumentsError",
    "ImmutableFieldError",
]
