"""Log severities (info, warning, error, fatal) and lookup by name."""

from __future__ import annotations

import enum

CHAR = "IWEF"
"""One shortcut letter per severity level, in severity order."""


class Severity(enum.IntEnum):
    """The sort of a log entry, in order of increasing severity.

    A message written to a high-severity log is also written to each
    lower-severity log.
    """

    INFO = 0
    WARNING = 1
    ERROR = 2
    FATAL = 3

    def char(self) -> str:
        """Return the single letter used for this severity in log headers."""
        return CHAR[self.value]


NUM_SEVERITY = len(Severity)


def by_name(name: str) -> Severity:
    """Look up a severity by its name, ignoring case.

    Raises ValueError when no severity has that name.
    """
    wanted = name.upper()
    for severity in Severity:
        if severity.name == wanted:
            return severity
    raise ValueError(f"unknown severity name: {name!r}")