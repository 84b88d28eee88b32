"""Real clock, timers and tickers that can be swapped for fakes in tests."""

from __future__ import annotations

import queue
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, Optional, Union

Duration = Union[float, int, timedelta]


def _seconds(duration: Duration) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


class RealTimer:
    """A one-shot timer backed by a thread.

    Without a callback, the firing time is delivered on the queue ``c``
    (capacity one). With a callback, the callback runs in its own thread
    and ``c`` is None.
    """

    def __init__(self, d: Duration, func: Optional[Callable[[], None]] = None) -> None:
        self._func = func
        self.c: Optional[queue.Queue] = None if func is not None else queue.Queue(maxsize=1)
        self._lock = threading.Lock()
        self._generation = 0
        self._active = False
        self._thread: Optional[threading.Timer] = None
        with self._lock:
            self._start(d)

    def _start(self, d: Duration) -> None:
        self._generation += 1
        generation = self._generation
        self._active = True
        thread = threading.Timer(max(0.0, _seconds(d)), self._fire, args=(generation,))
        thread.daemon = True
        self._thread = thread
        thread.start()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self._active:
                return
            self._active = False
        if self._func is not None:
            self._func()
        else:
            try:
                self.c.put_nowait(datetime.now())
            except queue.Full:
                pass

    def stop(self) -> bool:
        """Prevent the timer from firing; True if it was still pending."""
        with self._lock:
            was_active = self._active
            self._active = False
            self._generation += 1
            if self._thread is not None:
                self._thread.cancel()
            return was_active

    def reset(self, d: Duration) -> bool:
        """Re-arm the timer to fire after ``d``; True if it was still pending."""
        with self._lock:
            was_active = self._active
            if self._thread is not None:
                self._thread.cancel()
            self._start(d)
            return was_active


class RealTicker:
    """Delivers the current time on ``c`` every interval until stopped.

    Ticks are dropped while the previous one has not been received.
    """

    def __init__(self, d: Duration) -> None:
        interval = _seconds(d)
        if interval <= 0:
            raise ValueError("non-positive interval for new_ticker")
        self.c: queue.Queue = queue.Queue(maxsize=1)
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(interval,), daemon=True)
        self._thread.start()

    def _run(self, interval: float) -> None:
        next_tick = time.monotonic() + interval
        while not self._stopped.wait(max(0.0, next_tick - time.monotonic())):
            try:
                self.c.put_nowait(datetime.now())
            except queue.Full:
                pass
            next_tick += interval
            now = time.monotonic()
            if next_tick < now:
                next_tick = now + interval

    def stop(self) -> None:
        """Turn the ticker off; no more ticks are delivered afterwards."""
        self._stopped.set()


class RealClock:
    """A clock that uses the system time."""

    def now(self) -> datetime:
        return datetime.now()

    def since(self, ts: datetime) -> timedelta:
        return datetime.now() - ts

    def after(self, d: Duration) -> queue.Queue:
        """Return a queue that receives the time once ``d`` has elapsed."""
        return self.new_timer(d).c

    def new_timer(self, d: Duration) -> RealTimer:
        return RealTimer(d)

    def after_func(self, d: Duration, f: Callable[[], None]) -> RealTimer:
        """Run ``f`` in its own thread after ``d``."""
        return RealTimer(d, f)

    def new_ticker(self, d: Duration) -> RealTicker:
        return RealTicker(d)

    def sleep(self, d: Duration) -> None:
        time.sleep(max(0.0, _seconds(d)))