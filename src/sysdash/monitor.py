"""Polling scheduler for sysdash."""

import threading
from collections.abc import Callable
from enum import Enum
from queue import Queue

import structlog

from sysdash.assembler import SnapshotAssembler
from sysdash.models import FullSnapshot

logger = structlog.get_logger()

MIN_INTERVAL_MS = 100


class SchedulerState(Enum):
    """Lifecycle states of a PollingScheduler."""

    STOPPED = "stopped"
    RUNNING = "running"


class _Timer:
    """
    One armed timer: a daemon thread firing ``callback`` every interval.

    A cancelled timer finishes any callback already running but never
    starts another one.
    """

    def __init__(
        self,
        interval_ms: int,
        callback: Callable[["_Timer"], None],
        fire_immediately: bool,
    ) -> None:
        self.interval_ms = interval_ms
        self._callback = callback
        self._fire_immediately = fire_immediately
        self._cancelled = threading.Event()
        self.thread = threading.Thread(target=self._run, daemon=True, name="PollingScheduler")

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def start(self) -> None:
        self.thread.start()

    def cancel(self) -> None:
        self._cancelled.set()

    def _run(self) -> None:
        if self._fire_immediately and not self.cancelled:
            self._callback(self)
        # Wait for interval or until cancelled
        while not self._cancelled.wait(timeout=self.interval_ms / 1000):
            self._callback(self)


class PollingScheduler:
    """
    Triggers SnapshotAssembler.collect() on a timer.

    The scheduler is a two-state machine. RUNNING always owns exactly one
    armed timer and STOPPED owns none. Reconfiguring the interval cancels the
    current timer and arms its replacement under one lock. Collections are
    serialized, so a cycle started by a cancelled timer runs to completion
    before the replacement timer may collect.

    Snapshots are pushed to ``update_queue`` when one is given.
    """

    def __init__(
        self,
        assembler: SnapshotAssembler,
        update_queue: Queue[FullSnapshot] | None = None,
        interval_ms: int = 5000,
    ) -> None:
        """
        Initialize the PollingScheduler.

        Args:
            assembler: Assembler that runs each collection cycle.
            update_queue: Optional thread-safe queue receiving every snapshot.
            interval_ms: Interval used when start() is called without one.
        """
        self._assembler = assembler
        self._queue = update_queue
        self._interval_ms = self._clamp(interval_ms)
        self._state = SchedulerState.STOPPED
        self._timer: _Timer | None = None
        self._state_lock = threading.Lock()
        self._collect_lock = threading.Lock()

    @staticmethod
    def _clamp(interval_ms: int) -> int:
        return max(MIN_INTERVAL_MS, int(interval_ms))

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    def start(self, interval_ms: int | None = None) -> None:
        """Collect once right away, then every ``interval_ms``. No-op when running."""
        with self._state_lock:
            if self._state is SchedulerState.RUNNING:
                return
            if interval_ms is not None:
                self._interval_ms = self._clamp(interval_ms)
            self._arm(fire_immediately=True)
            self._state = SchedulerState.RUNNING
        logger.info("scheduler_started", interval_ms=self._interval_ms)

    def set_interval(self, interval_ms: int) -> None:
        """
        Change the polling interval.

        The new interval applies from the next tick; a cycle already in flight
        is not interrupted. On a stopped scheduler only the stored interval
        changes.
        """
        with self._state_lock:
            previous = self._interval_ms
            self._interval_ms = self._clamp(interval_ms)
            if self._state is SchedulerState.RUNNING:
                if self._timer is not None:
                    self._timer.cancel()
                self._arm(fire_immediately=False)
        logger.info("scheduler_interval_changed", previous_ms=previous, interval_ms=self._interval_ms)

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop polling.

        Args:
            timeout: How long to wait for an in-flight cycle to finish (seconds).
        """
        with self._state_lock:
            timer = self._timer
            self._timer = None
            self._state = SchedulerState.STOPPED
            if timer is not None:
                timer.cancel()

        if timer is not None:
            if timer.thread is not threading.current_thread():
                timer.thread.join(timeout=timeout)
            logger.info("scheduler_stopped")

    def collect_now(self) -> FullSnapshot:
        """Run one cycle outside the timer, serialized with scheduled cycles."""
        with self._collect_lock:
            snapshot = self._assembler.collect()
        self._publish(snapshot)
        return snapshot

    def _arm(self, fire_immediately: bool) -> None:
        # Caller holds _state_lock
        self._timer = _Timer(self._interval_ms, self._tick, fire_immediately)
        self._timer.start()

    def _tick(self, timer: _Timer) -> None:
        with self._collect_lock:
            if timer.cancelled:
                return
            try:
                snapshot = self._assembler.collect()
            except Exception:
                # The next tick is the retry
                logger.exception("collection_failed")
                return
        self._publish(snapshot)

    def _publish(self, snapshot: FullSnapshot) -> None:
        if self._queue is not None:
            self._queue.put(snapshot)
