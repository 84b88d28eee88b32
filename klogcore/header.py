"""Formatting of the traditional log line header."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime

from klogcore.severity import Severity


def _two_digits(value: int) -> str:
    return f"{value % 100:02d}"


def _n_digits(width: int, value: int, pad: str) -> str:
    """Right-align the lowest ``width`` digits of ``value``; zero yields padding only."""
    digits = str(value)[-width:] if value > 0 else ""
    return digits.rjust(width, pad)


def _normalize(severity: int) -> Severity:
    if severity > Severity.FATAL:
        return Severity.INFO
    return Severity(int(severity))


@dataclass
class HeaderFormatter:
    """Builds headers of the form ``Lmmdd hh:mm:ss.uuuuuu threadid file:line] ``.

    ``pid`` is inserted into every header; ``time``, when set, replaces the
    time passed to the formatting methods.
    """

    pid: int = field(default_factory=os.getpid)
    time: datetime | None = None

    def _prefix(self, severity: int, now: datetime) -> str:
        if self.time is not None:
            now = self.time
        return (
            _normalize(severity).char()
            + _two_digits(now.month)
            + _two_digits(now.day)
            + " "
            + _two_digits(now.hour)
            + ":"
            + _two_digits(now.minute)
            + ":"
            + _two_digits(now.second)
            + "."
            + _n_digits(6, now.microsecond, "0")
        )

    def format_header(self, severity: int, file: str, line: int, now: datetime) -> str:
        """Return the full header for a log entry at ``file``:``line``."""
        if line < 0:
            line = 0
        return (
            self._prefix(severity, now)
            + " "
            + _n_digits(7, self.pid, " ")
            + " "
            + file
            + f":{line}] "
        )

    def sprint_header(self, severity: int, now: datetime) -> str:
        """Return the short header without pid and source location."""
        return self._prefix(severity, now) + "]"