"""Request accounting: running total plus a 60 second rolling window."""

import time
from collections import deque
from datetime import datetime, timezone

WINDOW_MS = 60000


def now_ms():
    return int(time.time() * 1000)


def iso_ms(ms):
    """Epoch milliseconds -> ISO-8601 UTC string with a Z suffix."""
    dt = datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RequestCounter:
    """
    Counts every request seen and keeps the arrival times of the ones from
    the last minute. Old entries are only dropped when a new request comes
    in, so snapshot() never mutates anything.
    """

    def __init__(self, clock=now_ms, window_ms=WINDOW_MS):
        self.clock = clock
        self.window_ms = window_ms
        self.events = deque()
        self._total = 0
        self.started_at = clock()

    @property
    def total(self):
        return self._total

    @property
    def window_size(self):
        return len(self.events)

    def record_request(self, now=None):
        now = self.clock() if now is None else now
        self.events.append(now)
        cutoff = now - self.window_ms
        # an entry exactly window_ms old is already out
        while self.events and self.events[0] <= cutoff:
            self.events.popleft()
        self._total += 1

    def snapshot(self, uptime_seconds):
        avg = round(self._total / uptime_seconds, 4) if uptime_seconds > 0 else 0
        return {
            "total": self._total,
            "qpsAverage": avg,
            "qpsLastMinute": round(len(self.events) / 60, 4),
            "startedAt": iso_ms(self.started_at),
        }
