"""Building blocks for leveled, structured text logging: severities, headers,
key/value serialization, verbosity, record handling, object references,
JSON wrapping, a real clock and stack dumps."""

__version__ = "0.1.0"

__all__ = [
    "clock",
    "dbg",
    "formatting",
    "header",
    "references",
    "serialize",
    "severity",
    "sloghandler",
    "verbosity",
]