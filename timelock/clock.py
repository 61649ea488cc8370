"""
Clock sources supplying the current timestamp for each call
"""

import time


class SystemClock:
    """Wall clock in whole seconds"""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock that only moves when told to, for tests and demos"""

    def __init__(self, start: int = None):
        self._now = int(time.time()) if start is None else start

    def now(self) -> int:
        return self._now

    def latest(self) -> int:
        return self._now

    def increase(self, seconds: int) -> int:
        """Advance the clock by a number of seconds"""
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += seconds
        return self._now

    def increase_to(self, timestamp: int) -> int:
        """Advance the clock to an absolute timestamp"""
        if timestamp < self._now:
            raise ValueError(f"Timestamp {timestamp} is earlier than current time {self._now}")
        self._now = timestamp
        return self._now
