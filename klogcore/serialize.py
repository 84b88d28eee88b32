"""Serialization of key/value pairs into the text format of log lines.

Values are rendered according to the small protocols they implement:

* ``write_text()`` returning the text to insert verbatim,
* a custom ``__str__`` (anything that is not a built-in type),
* ``str`` and exceptions,
* ``marshal_log()`` returning a replacement value,
* ``log_value()`` returning a replacement value; a mapping returned from it
  is treated as an ordered group of attributes,
* ``bytes``, quoted with ASCII-only escapes.

Everything else is encoded as compact JSON.
"""

from __future__ import annotations

import base64
import dataclasses
import math
import types
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional, Sequence

MISSING_VALUE = "(MISSING)"
"""Inserted where a key has no value."""

AnyToStringFunc = Callable[[Any], str]

_MAX_RESOLVE = 100

_QUOTE_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
}

_JSON_ESCAPES = {
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


class _JSONError(Exception):
    """A value that cannot be encoded as JSON."""


def _has_method(obj: Any, name: str) -> bool:
    return not isinstance(obj, type) and callable(getattr(obj, name, None))


def _is_text_writer(obj: Any) -> bool:
    return _has_method(obj, "write_text")


def _is_marshaler(obj: Any) -> bool:
    return _has_method(obj, "marshal_log")


def _is_log_valuer(obj: Any) -> bool:
    return _has_method(obj, "log_value")


def _is_stringer(obj: Any) -> bool:
    """True for objects whose ``__str__`` comes from a non-built-in class."""
    if obj is None or isinstance(obj, type):
        return False
    for cls in type(obj).__mro__:
        if "__str__" in cls.__dict__:
            return cls.__module__ != "builtins"
    return False


def _quote(text: str, ascii_only: bool = False) -> str:
    """Quote a string with escapes for quotes and non-printable characters.

    Undecodable bytes (carried as surrogate escapes) are written as ``\\xNN``.
    """
    out = ['"']
    for ch in text:
        code = ord(ch)
        if ch in ('"', "\\"):
            out.append("\\" + ch)
            continue
        if 0xDC80 <= code <= 0xDCFF:
            out.append(f"\\x{code - 0xDC00:02x}")
            continue
        if ascii_only:
            printable = 0x20 <= code < 0x7F
        else:
            printable = ch == " " or (ch.isprintable() and not 0xD800 <= code <= 0xDFFF)
        if printable:
            out.append(ch)
        elif ch in _QUOTE_ESCAPES:
            out.append(_QUOTE_ESCAPES[ch])
        elif code < 0x20 or code == 0x7F:
            out.append(f"\\x{code:02x}")
        elif code < 0x10000:
            out.append(f"\\u{code:04x}")
        else:
            out.append(f"\\U{code:08x}")
    out.append('"')
    return "".join(out)


def _string_value(value: str) -> str:
    """Render a string value, using the indented block form for multi-line text."""
    if "\n" not in value:
        return "=" + _quote(value)
    *lines, rest = value.split("\n")
    body = "".join(f"\t{line}\n" for line in lines)
    if not rest:
        return "=<\n" + body + " >"
    return "=<\n" + body + "\t" + rest + "\n >"


def _text_writer_value(value: Any) -> str:
    try:
        return "=" + value.write_text()
    except Exception as err:  # noqa: BLE001 - a broken value must not break logging
        return f'="<panic: {err}>"'


def _resolve(value: Any) -> Any:
    """Call ``log_value`` repeatedly until a plain value remains."""
    for _ in range(_MAX_RESOLVE):
        if not _is_log_valuer(value):
            return value
        try:
            value = value.log_value()
        except Exception as err:  # noqa: BLE001
            return f"<panic: {err}>"
    return f"LogValue called too many times on Value of type {type(value).__name__}"


def _generate_resolved(value: Any) -> str:
    if isinstance(value, Mapping):
        members = (f"{_quote(str(key))}:{generate_json(item)}" for key, item in value.items())
        return "{" + ",".join(members) + "}"
    return generate_json(value)


def _pairs(kv: Sequence[Any]):
    return zip(kv[::2], kv[1::2])


# --- JSON encoding -------------------------------------------------------


def _json_string(text: str) -> str:
    out = ['"']
    for ch in text:
        code = ord(ch)
        if ch in ('"', "\\"):
            out.append("\\" + ch)
        elif ch in _JSON_ESCAPES:
            out.append(_JSON_ESCAPES[ch])
        elif code < 0x20 or ch in "<>&\u2028\u2029":
            out.append(f"\\u{code:04x}")
        elif 0xD800 <= code <= 0xDFFF:
            out.append("\\ufffd")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def _json_float(value: float) -> str:
    if math.isnan(value):
        raise _JSONError("json: unsupported value: NaN")
    if math.isinf(value):
        raise _JSONError(f"json: unsupported value: {'+Inf' if value > 0 else '-Inf'}")
    magnitude = abs(value)
    if magnitude != 0 and (magnitude < 1e-6 or magnitude >= 1e21):
        digits = Decimal(repr(value)).normalize().as_tuple().digits
        text = format(value, f".{max(len(digits) - 1, 0)}e")
        if len(text) >= 4 and text[-4] == "e" and text[-3] == "-" and text[-2] == "0":
            text = text[:-2] + text[-1]
        return text
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _json_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, int) and not isinstance(key, bool):
        return str(int(key))
    raise _JSONError(f"json: unsupported type: map with {type(key).__name__} keys")


def _public_fields(value: Any):
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return [(f.name, getattr(value, f.name)) for f in dataclasses.fields(value)]
    return list(vars(value).items())


def _json(value: Any, seen: set) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return _json_float(value)
    if isinstance(value, str):
        return _json_string(value)
    if isinstance(value, (bytes, bytearray)):
        return '"' + base64.b64encode(bytes(value)).decode("ascii") + '"'

    is_object = (
        (dataclasses.is_dataclass(value) and not isinstance(value, type))
        or (
            hasattr(value, "__dict__")
            and not callable(value)
            and not isinstance(value, (type, types.ModuleType))
        )
    )
    if not isinstance(value, (Mapping, list, tuple)) and not is_object:
        raise _JSONError(f"json: unsupported type: {type(value).__name__}")

    marker = id(value)
    if marker in seen:
        raise _JSONError(f"json: unsupported value: encountered a cycle via {type(value).__name__}")
    seen.add(marker)
    try:
        if isinstance(value, Mapping):
            items = sorted((_json_key(key), item) for key, item in value.items())
            return "{" + ",".join(f"{_json_string(k)}:{_json(v, seen)}" for k, v in items) + "}"
        if isinstance(value, (list, tuple)):
            return "[" + ",".join(_json(item, seen) for item in value) + "]"
        members = [
            f"{_json_string(name)}:{_json(item, seen)}"
            for name, item in _public_fields(value)
            if not name.startswith("_")
        ]
        return "{" + ",".join(members) + "}"
    finally:
        seen.discard(marker)


def _format_as_json(value: Any) -> str:
    try:
        return _json(value, set())
    except _JSONError as err:
        return f'"<internal error: {err}>"'


# --- public API ----------------------------------------------------------


def stringer_to_string(obj: Any) -> str:
    """Return ``str(obj)``, or a ``<panic: ...>`` text if that raises."""
    try:
        return str(obj)
    except Exception as err:  # noqa: BLE001
        return f"<panic: {err}>"


def marshaler_to_value(obj: Any) -> Any:
    """Return ``obj.marshal_log()``, or a ``<panic: ...>`` text if that raises."""
    try:
        return obj.marshal_log()
    except Exception as err:  # noqa: BLE001
        return f"<panic: {err}>"


def error_to_string(err: BaseException) -> str:
    """Return the message of an exception, or a ``<panic: ...>`` text if that raises."""
    try:
        return str(err)
    except Exception as failure:  # noqa: BLE001
        return f"<panic: {failure}>"


def generate_json(value: Any) -> str:
    """Render a value as valid single-line JSON, preferring plain strings."""
    if _is_stringer(value):
        return _quote(stringer_to_string(value))
    if _is_marshaler(value):
        return generate_json(marshaler_to_value(value))
    if _is_log_valuer(value):
        return _generate_resolved(_resolve(value))
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, BaseException):
        return _quote(str(value))
    return _format_as_json(value)


def with_values(old_kv: Sequence[Any], new_kv: Sequence[Any]) -> list:
    """Append new key/value pairs to well-formed old ones, padding a missing value."""
    merged = list(old_kv) + list(new_kv)
    if len(merged) % 2:
        merged.append(MISSING_VALUE)
    return merged


def merge_kvs(first: Sequence[Any], second: Sequence[Any]) -> list:
    """Merge two key/value lists; pairs in ``second`` override same keys in ``first``.

    ``first`` must be well-formed; a missing value at the end of ``second``
    is padded.
    """
    if not first and not second:
        return []
    if not first and len(second) % 2 == 0:
        return list(second)
    overrides = list(second[::2])
    merged = []
    for key, value in _pairs(first):
        if key not in overrides:
            merged.extend((key, value))
    merged.extend(second)
    if len(merged) % 2:
        merged.append(MISSING_VALUE)
    return merged


@dataclass(frozen=True)
class Formatter:
    """Formats key/value pairs; ``any_to_string_hook`` replaces JSON for other values."""

    any_to_string_hook: Optional[AnyToStringFunc] = None

    def _format_any(self, value: Any) -> str:
        if self.any_to_string_hook is not None:
            return "=" + self.any_to_string_hook(value)
        return "=" + _format_as_json(value)

    def _format_value(self, value: Any) -> str:
        if _is_text_writer(value):
            return _text_writer_value(value)
        if _is_stringer(value):
            return _string_value(stringer_to_string(value))
        if isinstance(value, str):
            return _string_value(value)
        if isinstance(value, BaseException):
            return _string_value(error_to_string(value))
        if _is_marshaler(value):
            marshaled = marshaler_to_value(value)
            if isinstance(marshaled, str):
                return _string_value(marshaled)
            return self._format_any(marshaled)
        if _is_log_valuer(value):
            resolved = _resolve(value)
            if isinstance(resolved, str):
                return _string_value(resolved)
            return "=" + _generate_resolved(resolved)
        if isinstance(value, (bytes, bytearray)):
            return "=" + _quote(bytes(value).decode("utf-8", "surrogateescape"), ascii_only=True)
        return self._format_any(value)

    def kv_format(self, key: Any, value: Any) -> str:
        """Render one pair as `` key=value``, with a leading space."""
        key_text = key if isinstance(key, str) else str(key)
        return f" {key_text}{self._format_value(value)}"

    def kv_list_format(self, *args: Any) -> str:
        """Render alternating keys and values; a trailing key gets the missing value."""
        parts = [self.kv_format(key, value) for key, value in _pairs(args)]
        if len(args) % 2:
            parts.append(self.kv_format(args[-1], MISSING_VALUE))
        return "".join(parts)

    def merge_and_format_kvs(self, first: Sequence[Any], second: Sequence[Any]) -> str:
        """Render the merge of two key/value lists without building it first."""
        if not first and not second:
            return ""
        if not first and len(second) % 2 == 0:
            return "".join(self.kv_format(key, value) for key, value in _pairs(second))
        overrides = list(second[::2])
        parts = [
            self.kv_format(key, value)
            for key, value in _pairs(first)
            if key not in overrides
        ]
        parts.extend(self.kv_format(key, value) for key, value in _pairs(second))
        if len(second) % 2:
            parts.append(self.kv_format(second[-1], MISSING_VALUE))
        return "".join(parts)


_DEFAULT = Formatter()


def merge_and_format_kvs(first: Sequence[Any], second: Sequence[Any]) -> str:
    """Render the merge of two key/value lists with the default formatter."""
    return _DEFAULT.merge_and_format_kvs(first, second)


def kv_list_format(*args: Any) -> str:
    """Render alternating keys and values with the default formatter."""
    return _DEFAULT.kv_list_format(*args)


def kv_format(key: Any, value: Any) -> str:
    """Render one key/value pair with the default formatter."""
    return _DEFAULT.kv_format(key, value)