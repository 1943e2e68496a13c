import threading
import time
from typing import Protocol


class Clock(Protocol):
    """Monotonically non-decreasing source of Unix timestamps (seconds)."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock time, clamped so it never runs backwards."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last


class ManualClock:
    """Clock driven explicitly by tests and simulations."""

    def __init__(self, start: int = 1_700_000_000):
        if start < 0:
            raise ValueError("Clock cannot start before the epoch")
        self._now = int(start)
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def set(self, timestamp: int) -> None:
        with self._lock:
            if timestamp < self._now:
                raise ValueError(f"Clock cannot move backwards ({timestamp} < {self._now})")
            self._now = int(timestamp)

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        with self._lock:
            self._now += int(seconds)
            return self._now
