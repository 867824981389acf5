"""Raw sample providers.

A provider hands out single, un-interpreted readings of the host. It does no
rate computation and keeps no history; that is the assembler's job.
"""

import ipaddress
import os
import platform
import socket
import sys
import tempfile
import time
from pathlib import Path
from typing import Protocol

import psutil

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

# Counters that psutil already folds into 'user' and 'nice' on Linux.
_DUPLICATED_TIMES = ("guest", "guest_nice")


class SampleProvider(Protocol):
    """Source of raw host readings consumed by SnapshotAssembler."""

    def system_info(self) -> SystemInfo: ...

    def cpu_samples(self) -> list[CpuTickSample]: ...

    def memory(self) -> MemorySnapshot: ...

    def uptime(self) -> UptimeSnapshot: ...

    def load_average(self) -> LoadAverage: ...

    def disk_usage(self) -> DiskSnapshot: ...

    def network_interfaces(self) -> list[NetworkInterface]: ...

    def processes(self) -> list[ProcessSnapshot]: ...


def _cpu_model() -> str:
    """Best effort CPU model label."""
    cpuinfo = Path("/proc/cpuinfo")
    if cpuinfo.exists():
        for line in cpuinfo.read_text(errors="replace").splitlines():
            if line.startswith("model name"):
                return line.split(":", 1)[1].strip()
    return platform.processor() or "Unknown"


def _prefix_length(netmask: str) -> int | None:
    """Count the set bits of a dotted or colon-separated netmask."""
    try:
        return bin(int(ipaddress.ip_address(netmask))).count("1")
    except ValueError:
        return None


def _default_disk_path() -> str:
    if sys.platform == "win32":
        return os.environ.get("SystemDrive", "C:") + "\\"
    return "/"


class PsutilProvider:
    """
    SampleProvider backed by psutil.

    CPU times are reported in integer milliseconds so that tick arithmetic
    stays in whole numbers.
    """

    def __init__(self, disk_path: str | None = None) -> None:
        self._disk_path = disk_path or _default_disk_path()
        self._model: str | None = None

    def system_info(self) -> SystemInfo:
        return SystemInfo(
            platform=sys.platform,
            type=platform.system(),
            release=platform.release(),
            hostname=socket.gethostname(),
            architecture=platform.machine(),
            home_directory=str(Path.home()),
            tmp_directory=tempfile.gettempdir(),
        )

    def cpu_samples(self) -> list[CpuTickSample]:
        if self._model is None:
            self._model = _cpu_model()

        per_core_times = psutil.cpu_times(percpu=True)
        try:
            freqs = psutil.cpu_freq(percpu=True) or []
        except (AttributeError, NotImplementedError, OSError):
            freqs = []

        samples = []
        for index, times in enumerate(per_core_times):
            ticks = {
                name: int(value * 1000)
                for name, value in times._asdict().items()
                if name not in _DUPLICATED_TIMES
            }
            # Some platforms report a single frequency for all cores
            freq = freqs[index] if index < len(freqs) else (freqs[0] if freqs else None)
            speed = int(freq.current) if freq is not None else 0
            samples.append(CpuTickSample(times=ticks, speed=speed, model=self._model))
        return samples

    def memory(self) -> MemorySnapshot:
        mem = psutil.virtual_memory()
        return MemorySnapshot(total=mem.total, free=mem.available)

    def uptime(self) -> UptimeSnapshot:
        return UptimeSnapshot(seconds=time.time() - psutil.boot_time())

    def load_average(self) -> LoadAverage:
        try:
            one, five, fifteen = psutil.getloadavg()
        except (AttributeError, OSError):
            return LoadAverage(0.0, 0.0, 0.0)
        return LoadAverage(one=one, five=five, fifteen=fifteen)

    def disk_usage(self) -> DiskSnapshot:
        usage = psutil.disk_usage(self._disk_path)
        return DiskSnapshot(total=usage.total, used=usage.used, free=usage.free)

    def network_interfaces(self) -> list[NetworkInterface]:
        interfaces: list[NetworkInterface] = []

        for name, addrs in psutil.net_if_addrs().items():
            mac = next(
                (a.address for a in addrs if a.family == psutil.AF_LINK),
                "00:00:00:00:00:00",
            )
            for addr in addrs:
                if addr.family == socket.AF_INET:
                    family = "IPv4"
                elif addr.family == socket.AF_INET6:
                    family = "IPv6"
                else:
                    continue

                # Strip the IPv6 zone suffix, e.g. 'fe80::1%eth0'
                address = addr.address.split("%", 1)[0]
                netmask = addr.netmask or ""
                ip = ipaddress.ip_address(address)
                prefix = _prefix_length(netmask)
                cidr = f"{address}/{prefix}" if prefix is not None else ""

                interfaces.append(
                    NetworkInterface(
                        name=name,
                        address=address,
                        netmask=netmask,
                        family=family,
                        mac=mac,
                        internal=ip.is_loopback,
                        cidr=cidr,
                    )
                )

        return interfaces

    def processes(self) -> list[ProcessSnapshot]:
        """
        Collect snapshots of all running processes.

        Processes that exit mid-iteration, deny access or are zombies are
        skipped. psutil caches Process objects across process_iter() calls,
        so cpu_percent is 0.0 on the first pass and a real rate afterwards.
        """
        processes: list[ProcessSnapshot] = []
        attrs = ["pid", "name", "username", "status", "cpu_percent", "memory_percent"]

        for proc in psutil.process_iter(attrs=attrs):
            try:
                info = proc.info
                processes.append(
                    ProcessSnapshot(
                        pid=info.get("pid", 0),
                        name=info.get("name") or "",
                        username=info.get("username") or "",
                        status=info.get("status") or "?",
                        cpu_percent=info.get("cpu_percent") or 0.0,
                        memory_percent=info.get("memory_percent") or 0.0,
                    )
                )
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

        return processes
