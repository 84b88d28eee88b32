"""Turning structured log records into calls of the text log writer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional

from klogcore.severity import Severity

LEVEL_DEBUG = -4
LEVEL_INFO = 0
LEVEL_WARN = 4
LEVEL_ERROR = 8


@dataclass
class Attr:
    """One key/value attribute of a record."""

    key: str
    value: Any


@dataclass
class Record:
    """A structured log record.

    ``level`` uses the numeric scale of the LEVEL_* constants. ``file`` is
    None when the record carries no source location, and empty when the
    location could not be resolved.
    """

    message: str
    level: int = LEVEL_INFO
    time: Optional[datetime] = None
    file: Optional[str] = None
    line: int = 0
    attrs: List[Attr] = field(default_factory=list)


PrintWithInfos = Callable[[str, int, datetime, Optional[BaseException], Severity, str, list], Any]


def _severity_for(level: int) -> Severity:
    if level >= LEVEL_ERROR:
        return Severity.ERROR
    if level >= LEVEL_WARN:
        return Severity.WARNING
    return Severity.INFO


def _key(groups: str, key: str) -> str:
    return f"{groups}.{key}" if groups else key


def attrs_to_kv_list(groups: str, attrs: Iterable[Attr]) -> list:
    """Flatten attributes into alternating keys and values, prefixing keys with ``groups``."""
    kv_list: list = []
    for attr in attrs:
        kv_list.extend((_key(groups, attr.key), attr.value))
    return kv_list


def handle(record: Record, groups: str, print_with_infos: PrintWithInfos) -> None:
    """Map a record onto severity, source location and key/value list and print it."""
    now = record.time if record.time is not None else datetime.now()
    severity = _severity_for(record.level)

    if record.file is None:
        file, line = "???", 1
    elif record.file:
        file, line = record.file.rsplit("/", 1)[-1], record.line
    else:
        file, line = "", 0

    kv_list = attrs_to_kv_list(groups, record.attrs)
    print_with_infos(file, line, now, None, severity, record.message, kv_list)