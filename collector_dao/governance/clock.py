"""
Ambient clocks for voting-window gating.

The engine never advances time itself; it only reads ``now()``. Whoever
produces blocks controls this value, so the engine assumes it is monotonic
but not tamper-proof.
"""

import time


class SystemClock:
    """Wall-clock time in seconds."""

    def now(self) -> float:
        return time.time()


class ManualClock:
    """
    Settable clock for tests and simulations.

    Refuses to move backwards.
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += seconds
        return self._now

    def set(self, timestamp: float) -> float:
        if timestamp < self._now:
            raise ValueError(
                f"Clock cannot move backwards ({timestamp} < {self._now})"
            )
        self._now = float(timestamp)
        return self._now

    def __repr__(self) -> str:
        return f"<ManualClock now={self._now}>"
