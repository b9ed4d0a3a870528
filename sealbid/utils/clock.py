"""
Time sources.

Timestamps are integer milliseconds since the Unix epoch. Lifecycle and
window code take a Clock so tests can move time explicitly.
"""

import time
from typing import Protocol

from sealbid.core.errors import InvalidParameters


class Clock(Protocol):
    def now_ms(self) -> int:
        ...


class SystemClock:
    """Wall clock."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start_ms: int = 0):
        if start_ms < 0:
            raise InvalidParameters(f"Clock cannot start before the epoch: {start_ms}", field="start_ms")
        self._now = start_ms

    def now_ms(self) -> int:
        return self._now

    def advance(self, ms: int) -> int:
        """Move forward by ms and return the new time."""
        if ms < 0:
            raise InvalidParameters(f"Clock cannot move backwards ({ms} ms)", field="ms")
        self._now += ms
        return self._now

    def set(self, ms: int) -> None:
        if ms < self._now:
            raise InvalidParameters(f"Clock cannot move backwards to {ms}", field="ms")
        self._now = ms
