"""Shared fixtures: a scripted SampleProvider standing in for psutil."""

import threading
import time

import pytest

from sysdash.assembler import SnapshotAssembler
from sysdash.config import Settings
from sysdash.models import (
    CpuTickSample,
    DiskSnapshot,
    LoadAverage,
    MemorySnapshot,
    NetworkInterface,
    ProcessSnapshot,
    SystemInfo,
    UptimeSnapshot,
)


def make_core(idle: int, busy: int, speed: int = 2400, model: str = "Test CPU") -> CpuTickSample:
    """A core whose non-idle ticks are all booked as 'user'."""
    return CpuTickSample(
        times={"user": busy, "nice": 0, "system": 0, "idle": idle, "irq": 0},
        speed=speed,
        model=model,
    )


class FakeProvider:
    """
    Deterministic SampleProvider.

    Every cpu_samples() call advances each core by ``idle_step`` idle ticks
    and ``busy_step`` busy ticks. Disk and process reads can be made to fail
    or hang, and one cpu_samples() call can be made to stall after sampling.
    """

    def __init__(self, cores: int = 2, idle_step: int = 750, busy_step: int = 250) -> None:
        self.cores = cores
        self.idle_step = idle_step
        self.busy_step = busy_step
        self.total_memory = 1000
        self.free_memory = 200
        self.uptime_seconds = 90061.0
        self.load = LoadAverage(0.52, 0.41, 0.3)
        self.disk = DiskSnapshot(total=1000, used=500, free=500)
        self.disk_error: Exception | None = None
        self.process_error: Exception | None = None
        self.slow_seconds = 0.0
        self.process_table = [
            ProcessSnapshot(pid=1, name="init", username="root", status="sleeping", cpu_percent=0.0, memory_percent=0.5),
            ProcessSnapshot(pid=42, name="busy", username="alice", status="running", cpu_percent=80.0, memory_percent=1.0),
            ProcessSnapshot(pid=43, name="twin", username="bob", status="running", cpu_percent=80.0, memory_percent=9.0),
            ProcessSnapshot(pid=7, name="idle", username="root", status="sleeping", cpu_percent=3.0, memory_percent=0.1),
        ]
        self.cpu_calls = 0
        self.stall_next = False
        self.stalled = threading.Event()
        self._ticks = 0
        self._lock = threading.Lock()

    def system_info(self) -> SystemInfo:
        return SystemInfo(
            platform="linux",
            type="Linux",
            release="6.1.0",
            hostname="testhost",
            architecture="x86_64",
            home_directory="/home/test",
            tmp_directory="/tmp",
        )

    def cpu_samples(self) -> list[CpuTickSample]:
        with self._lock:
            self.cpu_calls += 1
            self._ticks += 1
            step = self._ticks
            stall, self.stall_next = self.stall_next, False
        samples = [make_core(idle=self.idle_step * step, busy=self.busy_step * step) for _ in range(self.cores)]
        if stall:
            # Hold the freshly read sample while other readers try to run
            self.stalled.set()
            time.sleep(0.2)
        return samples

    def memory(self) -> MemorySnapshot:
        return MemorySnapshot(total=self.total_memory, free=self.free_memory)

    def uptime(self) -> UptimeSnapshot:
        return UptimeSnapshot(seconds=self.uptime_seconds)

    def load_average(self) -> LoadAverage:
        return self.load

    def disk_usage(self) -> DiskSnapshot:
        if self.slow_seconds:
            time.sleep(self.slow_seconds)
        if self.disk_error is not None:
            raise self.disk_error
        return self.disk

    def network_interfaces(self) -> list[NetworkInterface]:
        return [
            NetworkInterface("lo", "127.0.0.1", "255.0.0.0", "IPv4", "00:00:00:00:00:00", True, "127.0.0.1/8"),
            NetworkInterface("lo", "::1", "ffff:ffff:ffff:ffff:ffff:ffff:ffff:ffff", "IPv6", "00:00:00:00:00:00", True, "::1/128"),
            NetworkInterface("eth0", "10.0.0.5", "255.255.255.0", "IPv4", "02:42:ac:11:00:02", False, "10.0.0.5/24"),
        ]

    def processes(self) -> list[ProcessSnapshot]:
        if self.slow_seconds:
            time.sleep(self.slow_seconds)
        if self.process_error is not None:
            raise self.process_error
        return list(self.process_table)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def assembler(provider):
    a = SnapshotAssembler(provider, enrichment_timeout=0.5)
    yield a
    a.close()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        sysdash_background_poll=False,
        sysdash_enrichment_timeout=0.5,
        sysdash_poll_interval_ms=100,
        _env_file=None,
    )
