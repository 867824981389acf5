"""Snapshot assembly: one full collection cycle over a SampleProvider."""

import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timezone
from typing import Generic, TypeVar

import structlog

from sysdash import health
from sysdash.errors import ProviderUnavailable
from sysdash.estimator import CpuUsageEstimator
from sysdash.history import DEFAULT_CAPACITY, HistoryBuffer
from sysdash.models import (
    CpuSnapshot,
    CpuTickSample,
    DiskSnapshot,
    FullSnapshot,
    HealthReport,
    HistoricalPoint,
    LoadAverage,
    MemorySnapshot,
    NetworkInterface,
    ProcessSnapshot,
    SystemInfo,
    UptimeSnapshot,
)
from sysdash.providers import SampleProvider

logger = structlog.get_logger()

T = TypeVar("T")


def top_processes(processes: Iterable[ProcessSnapshot], limit: int) -> list[ProcessSnapshot]:
    """Busiest processes first: CPU descending, then memory descending."""
    ordered = sorted(processes, key=lambda p: (p.cpu_percent, p.memory_percent), reverse=True)
    return ordered[:limit]


class _BoundedReader(Generic[T]):
    """
    Runs one provider read on a dedicated worker with a bounded wait.

    While a read is still in flight, later callers wait on that same read
    instead of queueing another, so a hung source holds one thread at most.
    """

    def __init__(self, read: Callable[[], T], what: str) -> None:
        self._read = read
        self._what = what
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"sysdash-{what.replace(' ', '-')}")
        self._lock = threading.Lock()
        self._pending: Future[T] | None = None

    def __call__(self, timeout: float) -> T:
        with self._lock:
            future = self._pending
            if future is None or future.done():
                future = self._executor.submit(self._read)
                self._pending = future

        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as e:
            raise ProviderUnavailable(
                f"{self._what} read timed out",
                details={"timeout_seconds": timeout},
            ) from e
        except Exception as e:
            raise ProviderUnavailable(f"{self._what} read failed", details={"reason": str(e)}) from e

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


class SnapshotAssembler:
    """
    Owns the estimator and history state and assembles FullSnapshots.

    Disk and process reads are optional: each runs on its own worker with a
    bounded wait and degrades to None / empty inside collect(). Every other
    provider call is expected to succeed and its errors propagate.
    """

    def __init__(
        self,
        provider: SampleProvider,
        estimator: CpuUsageEstimator | None = None,
        history: HistoryBuffer | None = None,
        enrichment_timeout: float = 2.0,
        snapshot_process_limit: int = 5,
    ) -> None:
        self._provider = provider
        self._estimator = estimator or CpuUsageEstimator()
        self._history = history or HistoryBuffer(DEFAULT_CAPACITY)
        self._enrichment_timeout = enrichment_timeout
        self._snapshot_process_limit = snapshot_process_limit
        self._system_info: SystemInfo | None = None
        self._disk_reader = _BoundedReader(lambda: self._provider.disk_usage(), "disk")
        self._process_reader = _BoundedReader(lambda: self._provider.processes(), "process table")

    @property
    def estimator(self) -> CpuUsageEstimator:
        return self._estimator

    @property
    def history_buffer(self) -> HistoryBuffer:
        return self._history

    def close(self) -> None:
        """Release the enrichment workers."""
        self._disk_reader.close()
        self._process_reader.close()

    # Single-purpose readings

    def system_info(self) -> SystemInfo:
        if self._system_info is None:
            self._system_info = self._provider.system_info()
        return self._system_info

    def cpu(self) -> tuple[CpuSnapshot, list[CpuTickSample]]:
        """Read CPU ticks and advance the usage estimator."""
        usage, samples = self._estimator.read_and_estimate(self._provider.cpu_samples)
        first = samples[0]
        snapshot = CpuSnapshot(model=first.model, cores=len(samples), speed=first.speed, usage=usage)
        return snapshot, list(samples)

    def memory(self) -> MemorySnapshot:
        return self._provider.memory()

    def uptime(self) -> UptimeSnapshot:
        return self._provider.uptime()

    def load(self) -> LoadAverage:
        return self._provider.load_average()

    def cores(self) -> int:
        return len(self._provider.cpu_samples())

    def disk(self) -> DiskSnapshot:
        """Read disk usage; raises ProviderUnavailable on failure or timeout."""
        return self._disk_reader(self._enrichment_timeout)

    def network(self) -> list[NetworkInterface]:
        return self._provider.network_interfaces()

    def processes(self, limit: int) -> list[ProcessSnapshot]:
        """Top processes; raises ProviderUnavailable on failure or timeout."""
        return top_processes(self._process_reader(self._enrichment_timeout), limit)

    def history(self) -> tuple[HistoricalPoint, ...]:
        return self._history.snapshot()

    def _disk_or_none(self) -> DiskSnapshot | None:
        try:
            return self.disk()
        except ProviderUnavailable as e:
            logger.warning("disk_unavailable", error=e.message, **e.details)
            return None

    def health(self) -> HealthReport:
        """Health from fresh readings. Advances the estimator, skips history."""
        cpu, _ = self.cpu()
        memory = self.memory()
        disk = self._disk_or_none()
        return health.evaluate(
            round(memory.used_percent, 2),
            cpu.usage,
            disk.used_percent if disk is not None else None,
        )

    # Full cycle

    def collect(self) -> FullSnapshot:
        """Run one collection cycle and record it in the history."""
        system_info = self.system_info()
        cpu, _ = self.cpu()
        memory = self.memory()
        uptime = self.uptime()
        load = self.load()
        disk = self._disk_or_none()
        disk_percent = disk.used_percent if disk is not None else None

        memory_percent = round(memory.used_percent, 2)
        report = health.evaluate(memory_percent, cpu.usage, disk_percent)
        alerts = health.classify(memory_percent, cpu.usage, disk_percent)

        try:
            processes = tuple(self.processes(self._snapshot_process_limit))
        except ProviderUnavailable as e:
            logger.warning("processes_unavailable", error=e.message, **e.details)
            processes = ()

        interface_count = len({iface.name for iface in self.network()})

        timestamp = datetime.now(timezone.utc)
        self._history.append(
            HistoricalPoint(
                cpu_usage=cpu.usage,
                memory_usage=memory_percent,
                load_avg_1min=load.one,
                timestamp=timestamp,
            )
        )

        return FullSnapshot(
            system_info=system_info,
            cpu=cpu,
            memory=memory,
            uptime=uptime,
            load=load,
            disk=disk,
            network_interface_count=interface_count,
            processes=processes,
            health=report,
            alerts=alerts,
            history=self._history.snapshot(),
            timestamp=timestamp,
        )
