"""Data models for sysdash."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class HealthStatus(str, Enum):
    """Label derived from a health score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class Severity(str, Enum):
    """Alert severity for a single usage percentage."""

    SUCCESS = "success"
    INFO = "info"
    WARN = "warn"
    DANGER = "danger"


@dataclass(slots=True, frozen=True)
class CpuTickSample:
    """Cumulative tick counters of one core since boot."""

    times: Mapping[str, int]  # milliseconds per CPU state
    speed: int  # MHz, 0 when unknown
    model: str


@dataclass(slots=True, frozen=True)
class SystemInfo:
    """Static host description."""

    platform: str
    type: str
    release: str
    hostname: str
    architecture: str
    home_directory: str
    tmp_directory: str


@dataclass(slots=True, frozen=True)
class CpuSnapshot:
    model: str
    cores: int
    speed: int
    usage: int


@dataclass(slots=True, frozen=True)
class MemorySnapshot:
    """Memory totals in bytes."""

    total: int
    free: int

    @property
    def used(self) -> int:
        return self.total - self.free

    @property
    def used_percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.used / self.total * 100


@dataclass(slots=True, frozen=True)
class UptimeSnapshot:
    seconds: float

    @property
    def days(self) -> int:
        return int(self.seconds // 86400)

    @property
    def hours(self) -> int:
        return int((self.seconds % 86400) // 3600)

    @property
    def minutes(self) -> int:
        return int((self.seconds % 3600) // 60)

    @property
    def secs(self) -> int:
        return int(self.seconds % 60)


@dataclass(slots=True, frozen=True)
class LoadAverage:
    """1, 5 and 15 minute load averages. All zero where unsupported."""

    one: float
    five: float
    fifteen: float


@dataclass(slots=True, frozen=True)
class DiskSnapshot:
    """Usage of the primary volume, in bytes."""

    total: int
    used: int
    free: int

    @property
    def used_percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.used / self.total * 100


@dataclass(slots=True, frozen=True)
class NetworkInterface:
    name: str
    address: str
    netmask: str
    family: str  # 'IPv4' or 'IPv6'
    mac: str
    internal: bool
    cidr: str


@dataclass(slots=True, frozen=True)
class ProcessSnapshot:
    """Immutable snapshot of a process state."""

    pid: int
    name: str
    username: str
    status: str  # 'running', 'sleeping', 'zombie', etc.
    cpu_percent: float  # 0.0 - 100.0 * core_count
    memory_percent: float


@dataclass(slots=True, frozen=True)
class HealthReport:
    """Composite health score and the readings it was derived from."""

    score: int
    status: HealthStatus
    memory_percent: float
    cpu_percent: float
    disk_percent: float | None


@dataclass(slots=True, frozen=True)
class Alerts:
    memory: Severity
    cpu: Severity
    disk: Severity | None


@dataclass(slots=True, frozen=True)
class HistoricalPoint:
    """One entry of the rolling history."""

    cpu_usage: int
    memory_usage: float  # percent, rounded to two decimals
    load_avg_1min: float
    timestamp: datetime


@dataclass(slots=True, frozen=True)
class FullSnapshot:
    """Every tracked metric as read by one collection cycle."""

    system_info: SystemInfo
    cpu: CpuSnapshot
    memory: MemorySnapshot
    uptime: UptimeSnapshot
    load: LoadAverage
    disk: DiskSnapshot | None
    network_interface_count: int
    processes: tuple[ProcessSnapshot, ...]
    health: HealthReport
    alerts: Alerts
    history: tuple[HistoricalPoint, ...]
    timestamp: datetime
