"""Helpers for dumping call stacks."""

from __future__ import annotations

import sys
import threading
import traceback
from types import FrameType


def _format_thread(ident: int, name: str, frame: FrameType) -> str:
    summary = traceback.extract_stack(frame)
    summary.reverse()
    return f"thread {ident} [{name}]:\n" + "".join(traceback.format_list(summary))


def stacks(all_threads: bool) -> str:
    """Return the call stack of the calling thread or, if ``all_threads``, of every thread.

    Frames are listed innermost first; the calling thread comes first.
    """
    current = threading.get_ident()
    caller = sys._getframe(1)
    names = {thread.ident: thread.name for thread in threading.enumerate()}
    if not all_threads:
        return _format_thread(current, names.get(current, "unknown"), caller)

    frames = sys._current_frames()
    frames[current] = caller
    blocks = [
        _format_thread(ident, names.get(ident, "unknown"), frame)
        for ident, frame in sorted(frames.items(), key=lambda item: item[0] != current)
    ]
    return "\n".join(blocks)