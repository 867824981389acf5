"""CPU utilization from successive tick-counter samples."""

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from sysdash.errors import PreconditionViolation
from sysdash.models import CpuTickSample


@dataclass(slots=True, frozen=True)
class CpuUsageEstimatorState:
    """Core-averaged idle and total ticks of the previous sample."""

    idle: float
    total: float


def average_ticks(samples: Sequence[CpuTickSample]) -> tuple[float, float]:
    """Return ``(idle, total)`` ticks averaged over all cores."""
    if not samples:
        raise PreconditionViolation("CPU sample set has no cores.")

    idle = 0
    total = 0
    for sample in samples:
        total += sum(sample.times.values())
        idle += sample.times.get("idle", 0)

    cores = len(samples)
    return idle / cores, total / cores


class CpuUsageEstimator:
    """
    Turns cumulative CPU tick counters into a usage percentage.

    The first call only records a baseline and reports 0. Every later call
    reports usage since the previous call, truncated toward zero and not
    clamped, so rounding can push it slightly outside 0..100. A lock makes
    the baseline read-and-replace atomic for concurrent callers.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state: CpuUsageEstimatorState | None = None

    @property
    def state(self) -> CpuUsageEstimatorState | None:
        """Baseline left by the last call, None before the first one."""
        return self._state

    def estimate(self, samples: Sequence[CpuTickSample]) -> int:
        idle, total = average_ticks(samples)
        with self._lock:
            return self._advance(idle, total)

    def read_and_estimate(
        self, read: Callable[[], Sequence[CpuTickSample]]
    ) -> tuple[int, Sequence[CpuTickSample]]:
        """
        Take a sample with ``read`` and estimate from it in one locked step.

        Concurrent callers are ordered: baselines are only ever replaced by a
        later sample, so overlapping readers never see a negative delta.
        """
        with self._lock:
            samples = read()
            idle, total = average_ticks(samples)
            return self._advance(idle, total), samples

    def _advance(self, idle: float, total: float) -> int:
        # Caller holds _lock
        previous = self._state
        self._state = CpuUsageEstimatorState(idle=idle, total=total)

        if previous is None:
            return 0

        idle_delta = idle - previous.idle
        total_delta = total - previous.total
        if total_delta <= 0:
            # No ticks elapsed between samples; nothing to measure.
            return 0
        return 100 - int(100 * idle_delta / total_delta)

    def reset(self) -> None:
        """Forget the baseline; the next call is a cold start again."""
        with self._lock:
            self._state = None
