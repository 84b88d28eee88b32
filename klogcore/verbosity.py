"""Support for the -v and -vmodule settings.

Changing and checking these settings is thread-safe.
"""

from __future__ import annotations

import os
import re
import sys
import threading
from dataclasses import dataclass, field
from typing import Optional, Pattern

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

VMODULE_SYNTAX_ERROR = "syntax error: expect comma-separated list of filename=N"


class _BadPattern(Exception):
    """A file pattern with invalid syntax."""


def _parse_int32(value: str) -> int:
    if not _INT_RE.fullmatch(value):
        raise ValueError(f"invalid syntax for integer: {value!r}")
    number = int(value)
    if not _INT32_MIN <= number <= _INT32_MAX:
        raise ValueError(f"value out of range: {value!r}")
    return number


def _class_char(pattern: str, index: int) -> tuple:
    if index >= len(pattern) or pattern[index] in "-]":
        raise _BadPattern(pattern)
    if pattern[index] == "\\":
        index += 1
        if index >= len(pattern):
            raise _BadPattern(pattern)
    return pattern[index], index + 1


def _translate_class(pattern: str, index: int) -> tuple:
    """Translate a ``[...]`` class starting after the bracket; return regex and new index."""
    negated = False
    if index < len(pattern) and pattern[index] == "^":
        negated = True
        index += 1
    items = []
    count = 0
    while True:
        if index < len(pattern) and pattern[index] == "]" and count > 0:
            index += 1
            break
        lo, index = _class_char(pattern, index)
        hi = lo
        if index < len(pattern) and pattern[index] == "-":
            hi, index = _class_char(pattern, index + 1)
        count += 1
        if lo <= hi:
            items.append(f"[{re.escape(lo)}-{re.escape(hi)}]")
    alternatives = "|".join(items)
    if negated:
        regex = f"(?!{alternatives})[^/]" if items else "[^/]"
    else:
        regex = f"(?!/)(?:{alternatives})" if items else "(?!)"
    return regex, index


def _compile_pattern(pattern: str) -> Optional[Pattern[str]]:
    """Compile a file pattern with path-style glob semantics; None if malformed."""
    parts = []
    index = 0
    try:
        while index < len(pattern):
            char = pattern[index]
            if char == "*":
                parts.append("[^/]*")
                index += 1
            elif char == "?":
                parts.append("[^/]")
                index += 1
            elif char == "\\":
                if index + 1 >= len(pattern):
                    raise _BadPattern(pattern)
                parts.append(re.escape(pattern[index + 1]))
                index += 2
            elif char == "[":
                regex, index = _translate_class(pattern, index + 1)
                parts.append(regex)
            else:
                parts.append(re.escape(char))
                index += 1
    except _BadPattern:
        return None
    return re.compile("".join(parts), re.DOTALL)


def _is_literal(pattern: str) -> bool:
    """True if the pattern has no glob metacharacters."""
    return not any(char in pattern for char in "\\*?[]")


@dataclass(frozen=True)
class _ModulePattern:
    pattern: str
    level: int
    literal: bool = field(init=False)
    _regex: Optional[Pattern[str]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        literal = _is_literal(self.pattern)
        object.__setattr__(self, "literal", literal)
        object.__setattr__(self, "_regex", None if literal else _compile_pattern(self.pattern))

    def match(self, file: str) -> bool:
        if self.literal:
            return file == self.pattern
        return self._regex is not None and self._regex.fullmatch(file) is not None


class LevelSpec:
    """The value of the -v setting."""

    type_name = "Level"

    def __init__(self, vs: "VState") -> None:
        self._vs = vs
        self._level = 0

    def get(self) -> int:
        """Return the current verbosity level."""
        return self._level

    def _store(self, level: int) -> None:
        self._level = level

    def set(self, value: str) -> None:
        """Parse and apply a new level; raises ValueError for invalid input."""
        level = _parse_int32(value)
        with self._vs._lock:
            self._vs._apply(level, self._vs.vmodule.filter, False)

    def __str__(self) -> str:
        return str(self._level)


class ModuleSpec:
    """The value of the -vmodule setting, e.g. ``recordio=2,file=1,gfs*=3``."""

    type_name = "pattern=N,..."

    def __init__(self, vs: "VState") -> None:
        self._vs = vs
        self.filter: tuple = ()

    def get(self) -> None:
        """Always None; the filter is not exposed as a value."""
        return None

    def set(self, value: str) -> None:
        """Parse and apply a new module filter; raises ValueError for invalid input."""
        patterns = []
        for item in value.split(","):
            if not item:
                continue
            pattern_level = item.split("=")
            if len(pattern_level) != 2 or not pattern_level[0] or not pattern_level[1]:
                raise ValueError(VMODULE_SYNTAX_ERROR)
            pattern, level_text = pattern_level
            try:
                level = _parse_int32(level_text)
            except ValueError:
                raise ValueError(VMODULE_SYNTAX_ERROR) from None
            if level < 0:
                raise ValueError("negative value for vmodule level")
            if level == 0:
                continue
            patterns.append(_ModulePattern(pattern, level))
        with self._vs._lock:
            self._vs._apply(self._vs.verbosity.get(), tuple(patterns), True)

    def __str__(self) -> str:
        with self._vs._lock:
            return ",".join(f"{p.pattern}={p.level}" for p in self.filter)


def _module_name(path: str) -> str:
    if path.endswith(".py"):
        path = path[: -len(".py")]
    for separator in {"/", os.sep}:
        path = path.rsplit(separator, 1)[-1]
    return path


class VState:
    """Verbosity settings and the per-file level cache."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.verbosity = LevelSpec(self)
        self.vmodule = ModuleSpec(self)
        self._cache: dict = {}
        self._filter_length = 0

    def _apply(self, level: int, patterns: tuple, set_filter: bool) -> None:
        """Install a consistent state; the lock must be held."""
        self.verbosity._store(0)
        self._filter_length = 0
        if set_filter:
            self.vmodule.filter = patterns
            self._cache = {}
        self._filter_length = len(patterns)
        self.verbosity._store(level)

    def _level_for(self, filename: str) -> int:
        name = _module_name(filename)
        for pattern in self.vmodule.filter:
            if pattern.match(name):
                self._cache[filename] = pattern.level
                return pattern.level
        self._cache[filename] = 0
        return 0

    def enabled(self, level: int, depth: int = 0) -> bool:
        """Check whether logging at ``level`` is enabled for the caller.

        ``depth`` 0 means the direct caller of this method; higher values
        skip that many more stack frames.
        """
        if self.verbosity.get() >= level:
            return True
        if self._filter_length > 0:
            with self._lock:
                try:
                    frame = sys._getframe(depth + 1)
                except ValueError:
                    return False
                filename = frame.f_code.co_filename
                del frame
                current = self._cache.get(filename)
                if current is None:
                    current = self._level_for(filename)
                return current >= level
        return False