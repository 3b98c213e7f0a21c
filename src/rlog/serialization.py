"""
Projection of arbitrary log data into log-safe values.

``serialize`` turns the ``data`` mapping passed to a log call into something
sinks can render as JSON: primitives stay as they are, containers are walked,
rich types become strings or dicts, and anything else becomes a
``"<typename>"`` placeholder. Failures are contained to the value that caused
them.

Examples:
    >>> data = {"name": "x"}
    >>> data["self"] = data
    >>> serialize(SerializationConfig(), data)
    {'name': 'x', 'self': '<PtrToSelf>'}

Tags:
    serialization, encoding, json, rlog
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import json
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from rlog.common import LogData
from rlog.configuration import SerializationConfig

SELF_REFERENCE = "<PtrToSelf>"
FUNCTION_PLACEHOLDER = "<Function>"

# marks a value that must not appear in the output at all
_OMIT = object()

_PRIMITIVES = (str, int, float, bool)


def _encode_to_json(element: Any) -> str | None:
    try:
        return json.dumps(element)
    except (TypeError, ValueError):
        return None


def encode_to_json_or_string(element: Any) -> str:
    """JSON text for ``element``, or ``str(element)`` when it is not JSON-encodable."""
    encoded = _encode_to_json(element)
    if encoded is not None:
        return encoded
    try:
        return str(element)
    except Exception:
        return f"<{type(element).__name__}>"


def _placeholder(element: Any) -> str:
    return f"<{type(element).__name__}>"


def _encode_rich_type(config: SerializationConfig, element: Any, path: frozenset[int]) -> Any:
    if isinstance(element, Enum):
        return f"{type(element).__name__}.{element.name}"
    if isinstance(element, (dt.datetime, dt.date, dt.time)):
        return element.isoformat()
    if isinstance(element, dt.timedelta):
        return element.total_seconds()
    if isinstance(element, (Decimal, UUID, PurePath)):
        return str(element)
    if isinstance(element, BaseModel):
        return _encode_mapping(config, element, dict(element), path, force_deep=True)
    if dataclasses.is_dataclass(element) and not isinstance(element, type):
        values = {f.name: getattr(element, f.name) for f in dataclasses.fields(element)}
        return _encode_mapping(config, element, values, path, force_deep=True)
    return _OMIT


def _encode_mapping(
    config: SerializationConfig,
    owner: Any,
    items: Mapping[Any, Any],
    path: frozenset[int],
    force_deep: bool = False,
) -> Any:
    if not (config.deep_encode_tables or force_deep):
        return owner

    inner = path | {id(owner)}
    encoded: dict[str, Any] = {}
    for key, value in items.items():
        if value is owner or id(value) in inner:
            encoded[str(key)] = SELF_REFERENCE
            continue
        result = _encode_value(config, value, inner)
        if result is not _OMIT:
            encoded[str(key)] = result
    return encoded


def _encode_sequence(config: SerializationConfig, owner: Any, path: frozenset[int]) -> list[Any]:
    inner = path | {id(owner)}
    encoded: list[Any] = []
    for value in owner:
        if id(value) in inner:
            encoded.append(SELF_REFERENCE)
            continue
        result = _encode_value(config, value, inner)
        if result is not _OMIT:
            encoded.append(result)
    return encoded


def _encode_value(config: SerializationConfig, element: Any, path: frozenset[int]) -> Any:
    try:
        return _encode_unchecked(config, element, path)
    except Exception:
        return encode_to_json_or_string(element)


def _encode_unchecked(config: SerializationConfig, element: Any, path: frozenset[int]) -> Any:
    if element is None or isinstance(element, _PRIMITIVES) and not isinstance(element, Enum):
        return element

    method = getattr(element, config.encode_method, None) if config.encode_method else None
    if callable(method) and not isinstance(element, type):
        result = method()
        if result is element:
            return SELF_REFERENCE
        return _encode_value(config, result, path | {id(element)})

    if isinstance(element, Mapping):
        return _encode_mapping(config, element, element, path)

    if isinstance(element, (list, tuple, set, frozenset)):
        return _encode_sequence(config, element, path)

    if callable(element) and not isinstance(element, type):
        return FUNCTION_PLACEHOLDER if config.encode_functions else _OMIT

    if not config.encode_rich_types:
        return _placeholder(element)

    encoded = _encode_rich_type(config, element, path)
    if encoded is _OMIT:
        return _placeholder(element)
    return encoded


def serialize(config: SerializationConfig, data: Mapping[str, Any] | None) -> LogData:
    """Encode a log call's data mapping. Never raises.

    The top-level mapping is always walked; ``deep_encode_tables`` decides
    whether nested mappings are walked too.
    """
    if not data:
        return {}

    top: dict[str, Any] = {}
    path = frozenset({id(data)})
    for key, value in data.items():
        if value is data:
            top[str(key)] = SELF_REFERENCE
            continue
        result = _encode_value(config, value, path)
        if result is not _OMIT:
            top[str(key)] = result
    return top
