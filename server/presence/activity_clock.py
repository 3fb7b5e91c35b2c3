"""
Activity clock module.

Tracks the time of the most recent accepted inbound event, system-wide.
"""

import threading
import time
from typing import Callable, Optional


class ActivityClock:
    """Process-wide last-activity timestamp that never moves backward."""

    def __init__(self, time_source: Callable[[], float] = time.monotonic):
        self._time_source = time_source
        self._lock = threading.Lock()
        self._last_touch = time_source()

    def touch(self, now: Optional[float] = None) -> None:
        """Record activity at ``now`` (default: current time)."""
        if now is None:
            now = self._time_source()
        with self._lock:
            # A late-arriving touch with an older reading must not rewind the clock
            if now > self._last_touch:
                self._last_touch = now

    def elapsed_since_touch(self) -> float:
        """Seconds since the last recorded activity."""
        now = self._time_source()
        with self._lock:
            return max(0.0, now - self._last_touch)

    @property
    def last_touch(self) -> float:
        with self._lock:
            return self._last_touch
