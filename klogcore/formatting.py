"""Wrapping values so they are logged as pretty JSON or plain structures."""

from __future__ import annotations

import base64
import dataclasses
import json
import math
import types
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, int) and not isinstance(key, bool):
        return str(int(key))
    raise TypeError(f"json: unsupported type: map with {type(key).__name__} keys")


def _is_object(value: Any) -> bool:
    if isinstance(value, (type, types.ModuleType)):
        return False
    if dataclasses.is_dataclass(value):
        return True
    return hasattr(value, "__dict__") and not callable(value)


def _fields(value: Any):
    if dataclasses.is_dataclass(value):
        items = [(f.name, getattr(value, f.name)) for f in dataclasses.fields(value)]
    else:
        items = list(vars(value).items())
    return [(name, item) for name, item in items if not name.startswith("_")]


def _plain(value: Any, seen: set) -> Any:
    """Convert a value into plain JSON-compatible data without special methods."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        number = float(value)
        if math.isfinite(number) and number.is_integer() and abs(number) < 1e21:
            return int(number)
        return number
    if isinstance(value, str):
        return str.__str__(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if not isinstance(value, (Mapping, list, tuple)) and not _is_object(value):
        raise TypeError(f"json: unsupported type: {type(value).__name__}")

    marker = id(value)
    if marker in seen:
        raise ValueError(f"json: unsupported value: encountered a cycle via {type(value).__name__}")
    seen.add(marker)
    try:
        if isinstance(value, Mapping):
            items = sorted((_key(key), item) for key, item in value.items())
            return {key: _plain(item, seen) for key, item in items}
        if isinstance(value, (list, tuple)):
            return [_plain(item, seen) for item in value]
        return {name: _plain(item, seen) for name, item in _fields(value)}
    finally:
        seen.discard(marker)


def _pretty_json(value: Any) -> str:
    text = json.dumps(_plain(value, set()), indent=2, ensure_ascii=False, allow_nan=False)
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return text + "\n"


@dataclass(frozen=True)
class FormatAny:
    """A wrapped value: its text form is pretty-printed JSON."""

    obj: Any

    def __str__(self) -> str:
        try:
            return _pretty_json(self.obj)
        except (TypeError, ValueError) as err:
            return f"error marshaling {type(self).__name__} to JSON: {err}"

    def marshal_log(self) -> Any:
        """Return the value as plain data, bypassing its own text and log methods."""
        try:
            return _plain(self.obj, set())
        except (TypeError, ValueError):
            return self.obj


def format_value(obj: Any) -> FormatAny:
    """Wrap a value so that it is logged as JSON instead of through its own methods."""
    return FormatAny(obj)