"""Environment-driven baseline settings for rlog.

Every effective logger configuration starts from a baseline. The baseline is
read once from the environment (``RLOG_*`` variables and an optional ``.env``
file) so a deployment can raise or lower verbosity without touching code.

Manifesto:
    - **Pydantic validation:** Bad values fail at startup, not at the first log call
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** Verbose in studio/development, WARNING otherwise

Features:
    - **RLogSettings:** studio, min_log_level, context_bypass, suspend_context,
      flush_on_exit, diagnostics_level, diagnostics_json
    - **get_settings():** Cached accessor; ``get_settings.cache_clear()`` reloads

Examples:
    >>> import os
    >>> os.environ["RLOG_MIN_LOG_LEVEL"] = "info"
    >>> get_settings.cache_clear()
    >>> get_settings().resolved_min_log_level()
    <LogLevel.INFO: 2>

Tags:
    settings, configuration, pydantic, environment, rlog
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rlog.common import LogLevel


class RLogSettings(BaseSettings):
    """Baseline settings shared by every logger in the process.

    Fields
    ──────
    studio           : Development mode; lowers the default level to VERBOSE
    min_log_level    : Explicit baseline level (name or number), wins over studio
    context_bypass   : Baseline for sub-threshold recovery inside contexts
    suspend_context  : Baseline for deferring whole flows until they stop
    flush_on_exit    : Drain every buffered context when the interpreter exits
    diagnostics_level: Threshold for rlog.* diagnostics in configure_logging()
    diagnostics_json : Render diagnostics as JSON (None: JSON unless stdout is a tty)
    """

    model_config = SettingsConfigDict(
        env_prefix="RLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    studio: bool = False
    min_log_level: LogLevel | None = None
    context_bypass: bool = False
    suspend_context: bool = False
    flush_on_exit: bool = True
    diagnostics_level: str = "WARNING"
    diagnostics_json: bool | None = None

    @field_validator("diagnostics_level")
    @classmethod
    def _check_diagnostics_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown diagnostics level: {value!r}")
        return level

    @field_validator("min_log_level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> LogLevel | None:
        if value is None or value == "":
            return None
        return LogLevel.parse(value)

    def resolved_min_log_level(self) -> LogLevel:
        if self.min_log_level is not None:
            return self.min_log_level
        return LogLevel.VERBOSE if self.studio else LogLevel.WARNING


@lru_cache(maxsize=1)
def get_settings() -> RLogSettings:
    return RLogSettings()
