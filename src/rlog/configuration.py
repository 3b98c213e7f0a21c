"""
Effective logger configuration and the rules for merging it.

Loggers, contexts and derived loggers all describe their settings as partial
overrides. ``merge_configs`` folds a chain of partials over the environment
baseline into one ``RLogConfig``.

Architecture:
    ::

        default_rlog_config()          ← RLogSettings (env / .env)
              │
              ▼
        merge_configs(default logger, context, override, ...)
              │
              ├── scalars          later wins (None = absent)
              ├── tag              always the LAST partial's tag
              ├── serialization    merged field by field
              ├── sinks/enrichers  scanned last→first, first identity wins
              └── unknown keys     collected into ``extras``
              │
              ▼
        RLogConfig

Examples:
    >>> first = {"tag": "combat", "min_log_level": LogLevel.INFO}
    >>> merged = merge_configs(first, {"context_bypass": True})
    >>> merged.tag is None
    True
    >>> merged.min_log_level
    <LogLevel.INFO: 2>

Guardrails:
    ❌ DON'T: Expect a tag to be inherited by a derived config
    ✅ DO: Pass ``tag`` again (or use ``RLog.with_tag``) on the config that needs it

    ❌ DON'T: Mutate a logger's config in place
    ✅ DO: Derive a new logger; entries get their own ``snapshot()``

Tags:
    configuration, merge, precedence, sinks, enrichers, rlog
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any, TypedDict

from rlog.common import LogLevel
from rlog.diagnostics import get_logger
from rlog.settings import get_settings

if TYPE_CHECKING:
    from rlog.protocols import CorrelationGenerator, Enricher, Sink

logger = get_logger(__name__)


@dataclass(frozen=True)
class SerializationConfig:
    """How ``data`` is projected into ``encoded_data``.

    Attributes:
        encode_rich_types: Encode enums, dates, dataclasses, models, ... structurally
        encode_functions: Render callables as ``"<Function>"`` instead of dropping them
        deep_encode_tables: Walk nested mappings instead of passing them through
        encode_method: Name of a method an object can expose to encode itself
    """

    encode_rich_types: bool = True
    encode_functions: bool = False
    deep_encode_tables: bool = True
    encode_method: str = "__rlog_encode__"


class PartialSerializationConfig(TypedDict, total=False):
    encode_rich_types: bool
    encode_functions: bool
    deep_encode_tables: bool
    encode_method: str


class PartialRLogConfig(TypedDict, total=False):
    """Any subset of RLogConfig. Unknown keys pass through into ``extras``."""

    min_log_level: LogLevel | int | str
    serialization: PartialSerializationConfig | SerializationConfig
    correlation_generator: CorrelationGenerator
    tag: str | None
    sinks: list[Sink]
    enrichers: list[Enricher]
    context_bypass: bool
    suspend_context: bool


@dataclass
class RLogConfig:
    """Resolved settings used to produce and route entries.

    Attributes:
        min_log_level: Entries below this level are dropped (or bypass-buffered)
        serialization: Options for encoding ``data``
        sinks: Ordered sink callbacks
        enrichers: Ordered enricher callbacks
        tag: Per-instance label, never inherited
        correlation_generator: Id generator for contexts started from this config
        context_bypass: Buffer sub-threshold entries for retroactive delivery
        suspend_context: Defer every entry of a context until it stops
        extras: Unknown keys from partial configs, untouched
    """

    min_log_level: LogLevel = LogLevel.WARNING
    serialization: SerializationConfig = field(default_factory=SerializationConfig)
    sinks: list[Sink] = field(default_factory=list)
    enrichers: list[Enricher] = field(default_factory=list)
    tag: str | None = None
    correlation_generator: CorrelationGenerator | None = None
    context_bypass: bool = False
    suspend_context: bool = False
    extras: dict[str, Any] = field(default_factory=dict)

    def snapshot(self) -> RLogConfig:
        """Independent copy: fresh lists and extras, same callables."""
        return replace(
            self,
            sinks=list(self.sinks),
            enrichers=list(self.enrichers),
            extras=dict(self.extras),
        )

    def to_partial(self) -> dict[str, Any]:
        """The full config expressed as a partial (every key present)."""
        partial: dict[str, Any] = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "extras"}
        partial.update(self.extras)
        return partial


_KNOWN_KEYS = frozenset(f.name for f in fields(RLogConfig)) - {"extras"}
_LIST_KEYS = frozenset({"sinks", "enrichers"})
_SERIALIZATION_KEYS = frozenset(f.name for f in fields(SerializationConfig))

ConfigLike = RLogConfig | Mapping[str, Any]


def default_serialization_config() -> SerializationConfig:
    return SerializationConfig()


def default_rlog_config() -> RLogConfig:
    """The baseline every merge starts from, built from RLogSettings."""
    settings = get_settings()
    return RLogConfig(
        min_log_level=settings.resolved_min_log_level(),
        serialization=default_serialization_config(),
        context_bypass=settings.context_bypass,
        suspend_context=settings.suspend_context,
    )


def _as_partial(config: ConfigLike) -> Mapping[str, Any]:
    if isinstance(config, RLogConfig):
        return config.to_partial()
    return config


def _serialization_partial(value: Any) -> dict[str, Any]:
    if isinstance(value, SerializationConfig):
        return asdict(value)
    if isinstance(value, Mapping):
        return {k: v for k, v in value.items() if k in _SERIALIZATION_KEYS and v is not None}
    logger.warning("rlog.config_invalid_serialization", value=repr(value))
    return {}


def _unique_extend(target: list[Any], items: Iterable[Any] | None) -> None:
    # identity, not equality: two distinct sink instances may compare equal
    for item in items or ():
        if not any(item is seen for seen in target):
            target.append(item)


def merge_configs(*configs: ConfigLike | None) -> RLogConfig:
    """Merge partial configurations over the baseline.

    Args:
        *configs: Partials (mappings or RLogConfig), least specific first.
            ``None`` entries are skipped.

    Returns:
        A new RLogConfig. Never raises.
    """
    partials = [_as_partial(config) for config in configs if config is not None]
    baseline = default_rlog_config()

    serialization = asdict(baseline.serialization)
    scalars: dict[str, Any] = {
        f.name: getattr(baseline, f.name)
        for f in fields(baseline)
        if f.name not in _LIST_KEYS and f.name not in ("serialization", "extras")
    }
    extras: dict[str, Any] = {}

    for partial in partials:
        for key, value in partial.items():
            if key == "serialization":
                if value is not None:
                    serialization.update(_serialization_partial(value))
            elif key in _LIST_KEYS or key == "tag":
                continue
            elif key == "min_log_level":
                if value is None:
                    continue
                try:
                    scalars[key] = LogLevel.parse(value)
                except ValueError:
                    logger.warning("rlog.config_invalid_min_log_level", value=repr(value))
            elif key in _KNOWN_KEYS:
                if value is not None:
                    scalars[key] = value
            else:
                extras[key] = value
        scalars["tag"] = partial.get("tag")

    sinks: list[Sink] = []
    enrichers: list[Enricher] = []
    for partial in reversed(partials):
        _unique_extend(sinks, partial.get("sinks"))
        _unique_extend(enrichers, partial.get("enrichers"))

    return RLogConfig(
        **scalars,
        serialization=SerializationConfig(**serialization),
        sinks=sinks,
        enrichers=enrichers,
        extras=extras,
    )
