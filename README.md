# klogcore

Building blocks for leveled, structured logging in the style of glog-like
text logs. The package provides the pieces a text logger is made of; it is
a library with no command-line entry point.

## Modules

- `klogcore.severity`: the `Severity` enum (`INFO`, `WARNING`, `ERROR`,
  `FATAL`), `Severity.char()` for the one-letter code used in headers, and
  `by_name`, a case-insensitive lookup that raises `ValueError` for unknown
  names.
- `klogcore.header`: `HeaderFormatter`, with `format_header` producing
  headers such as `I0102 15:04:05.123456   12345 file.py:42] ` and
  `sprint_header` producing the short form `I0102 15:04:05.123456]`. Its
  `pid` defaults to the current process id; setting `time` overrides the
  time passed in.
- `klogcore.serialize`: key/value formatting for log lines
  (`kv_format`, `kv_list_format`, `merge_and_format_kvs`), list helpers
  (`with_values`, `merge_kvs`), `generate_json`, the panic-safe helpers
  `stringer_to_string`, `marshaler_to_value` and `error_to_string`, and the
  `Formatter` class whose `any_to_string_hook` replaces JSON encoding for
  values without a special form. Missing values are filled with
  `MISSING_VALUE` (`"(MISSING)"`). Multi-line strings are written in an
  indented `=<` ... ` >` block.
- `klogcore.verbosity`: `VState`, holding a `-v` style level
  (`VState.verbosity`, a `LevelSpec`) and a `-vmodule` style per-file filter
  (`VState.vmodule`, a `ModuleSpec`, e.g. `recordio=2,file=1,gfs*=3`).
  `VState.enabled(level, depth)` checks the global level and then matches the
  calling file's name (without `.py`) against the filter patterns. Invalid
  settings raise `ValueError`.
- `klogcore.sloghandler`: `Record` and `Attr` for structured records,
  `LEVEL_DEBUG`/`LEVEL_INFO`/`LEVEL_WARN`/`LEVEL_ERROR`, `handle`, which maps
  a record to severity, source location and a key/value list and passes them
  to a print callback, and `attrs_to_kv_list`.
- `klogcore.references`: `ObjectRef`, `kobj`, `kref`, `kobjs`, `kobj_slice`
  and `KObjSlice` for logging references to namespaced objects, and the
  `KMetadata` protocol (`get_name`, `get_namespace`).
- `klogcore.formatting`: `format_value`, which wraps a value in `FormatAny`;
  its text form is pretty-printed JSON and `marshal_log()` returns the value
  as plain data.
- `klogcore.clock`: `RealClock` with `now`, `since`, `after`, `new_timer`,
  `after_func`, `new_ticker` and `sleep`, plus `RealTimer` and `RealTicker`
  whose ticks arrive on a queue `c`.
- `klogcore.dbg`: `stacks(all_threads)`, a text dump of the calling thread's
  stack or of every thread's stack.

## Installation

```
pip install klogcore
```

## Examples

Structured key/value pairs:

```python
from klogcore.serialize import kv_list_format

kv_list_format("pod", "web-1", "count", 3)
# ' pod="web-1" count=3'
```

Log headers:

```python
from datetime import datetime
from klogcore.header import HeaderFormatter
from klogcore.severity import Severity

HeaderFormatter(pid=12345).format_header(
    Severity.INFO, "file.py", 42, datetime(2024, 1, 2, 15, 4, 5, 123456)
)
# 'I0102 15:04:05.123456   12345 file.py:42] '
```

Verbosity with per-file overrides:

```python
from klogcore.verbosity import VState

vs = VState()
vs.verbosity.set("2")
vs.vmodule.set("worker=4")
vs.enabled(1, 0)   # True
```

Object references:

```python
from klogcore.references import kref

str(kref("default", "web-1"))   # 'default/web-1'
```

Pretty JSON for arbitrary values:

```python
from klogcore.formatting import format_value

str(format_value({"b": 1, "a": 2}))
# '{\n  "a": 2,\n  "b": 1\n}\n'
```

## What the package does not do

There is no global logger here: no `info`/`warning`/`error`/`fatal` calls,
no writing to standard error or to log files, no buffering or flushing, no
log file rotation and no command-line flags. The modules produce headers,
key/value text and verbosity decisions; writing the resulting lines
somewhere is left to the application.

## Running the tests

```
pip install -e ".[test]"
pytest
```