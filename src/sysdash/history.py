"""Rolling history of derived samples."""

import threading
from collections import deque

from sysdash.models import HistoricalPoint

DEFAULT_CAPACITY = 20


class HistoryBuffer:
    """
    Fixed-capacity, chronologically ordered buffer of HistoricalPoint.

    Appending beyond capacity evicts the oldest point. Appends and reads
    share a lock, so a reader never sees a half-applied eviction.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self._lock = threading.Lock()
        self._points: deque[HistoricalPoint] = deque(maxlen=capacity)

    def __len__(self) -> int:
        with self._lock:
            return len(self._points)

    @property
    def capacity(self) -> int:
        return self._points.maxlen or 0

    def append(self, point: HistoricalPoint) -> None:
        with self._lock:
            self._points.append(point)

    def snapshot(self) -> tuple[HistoricalPoint, ...]:
        """Return the points, oldest first."""
        with self._lock:
            return tuple(self._points)
