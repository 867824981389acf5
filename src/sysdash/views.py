"""JSON-ready renderings of sysdash models.

Field names and string/number typing follow the dashboard's wire format:
percentages and GB figures are two-decimal strings, except inside history
points where they are numbers.
"""

from collections.abc import Iterable

from sysdash.models import (
    Alerts,
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


def format_gb(size: int) -> str:
    """Format bytes as gigabytes with two decimals."""
    return f"{size / 1024**3:.2f}"


def format_percent(value: float) -> str:
    return f"{value:.2f}"


def isoformat(moment) -> str:
    """ISO 8601 with millisecond precision and a 'Z' suffix."""
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def system_info_view(info: SystemInfo, include_tmp: bool = True) -> dict:
    view = {
        "platform": info.platform,
        "type": info.type,
        "release": info.release,
        "hostname": info.hostname,
        "architecture": info.architecture,
        "homeDirectory": info.home_directory,
    }
    if include_tmp:
        view["tmpDirectory"] = info.tmp_directory
    return view


def cpu_view(cpu: CpuSnapshot, samples: Iterable[CpuTickSample] | None = None) -> dict:
    view = {
        "model": cpu.model,
        "cores": cpu.cores,
        "speed": cpu.speed,
        "usage": cpu.usage,
    }
    if samples is not None:
        view["details"] = [
            {"core": index, "model": s.model, "speed": s.speed, "times": dict(s.times)}
            for index, s in enumerate(samples)
        ]
    return view


def memory_view(memory: MemorySnapshot) -> dict:
    return {
        "total": memory.total,
        "free": memory.free,
        "used": memory.used,
        "usedPercentage": format_percent(memory.used_percent),
        "totalGB": format_gb(memory.total),
        "freeGB": format_gb(memory.free),
        "usedGB": format_gb(memory.used),
    }


def uptime_view(uptime: UptimeSnapshot) -> dict:
    return {
        "seconds": uptime.seconds,
        "formatted": {
            "days": uptime.days,
            "hours": uptime.hours,
            "minutes": uptime.minutes,
            "seconds": uptime.secs,
        },
    }


def load_view(load: LoadAverage) -> dict:
    return {
        "1min": format_percent(load.one),
        "5min": format_percent(load.five),
        "15min": format_percent(load.fifteen),
    }


def disk_view(disk: DiskSnapshot, include_bytes: bool = True) -> dict:
    view = {
        "totalGB": format_gb(disk.total),
        "usedGB": format_gb(disk.used),
        "freeGB": format_gb(disk.free),
        "usedPercentage": format_percent(disk.used_percent),
    }
    if include_bytes:
        view = {"total": disk.total, "used": disk.used, "free": disk.free, **view}
    return view


def network_view(interfaces: list[NetworkInterface]) -> dict:
    return {
        "interfaces": [
            {
                "name": iface.name,
                "address": iface.address,
                "netmask": iface.netmask,
                "family": iface.family,
                "mac": iface.mac,
                "internal": iface.internal,
                "cidr": iface.cidr,
            }
            for iface in interfaces
        ],
        "count": len(interfaces),
    }


def health_view(report: HealthReport) -> dict:
    return {
        "score": report.score,
        "status": report.status.value,
        "metrics": {
            "memoryUsage": format_percent(report.memory_percent),
            "cpuUsage": report.cpu_percent,
            "diskUsage": format_percent(report.disk_percent) if report.disk_percent is not None else None,
        },
    }


def alerts_view(alerts: Alerts) -> dict:
    return {
        "memory": alerts.memory.value,
        "cpu": alerts.cpu.value,
        "disk": alerts.disk.value if alerts.disk is not None else None,
    }


def history_point_view(point: HistoricalPoint) -> dict:
    return {
        "cpuUsage": point.cpu_usage,
        "memoryUsage": point.memory_usage,
        "loadAvg": point.load_avg_1min,
        "timestamp": isoformat(point.timestamp),
    }


def history_view(points: Iterable[HistoricalPoint], capacity: int) -> dict:
    data = [history_point_view(p) for p in points]
    return {"data": data, "count": len(data), "maxPoints": capacity}


def process_view(proc: ProcessSnapshot) -> dict:
    return {
        "pid": proc.pid,
        "name": proc.name,
        "cpu": format_percent(proc.cpu_percent),
        "mem": format_percent(proc.memory_percent),
        "status": proc.status,
        "user": proc.username,
    }


def full_snapshot_view(snapshot: FullSnapshot) -> dict:
    return {
        "systemInfo": system_info_view(snapshot.system_info, include_tmp=False),
        "cpu": cpu_view(snapshot.cpu),
        "memory": memory_view(snapshot.memory),
        "uptime": uptime_view(snapshot.uptime),
        "loadAverage": load_view(snapshot.load),
        "networkInterfaces": snapshot.network_interface_count,
        "health": snapshot.health.score,
        "healthStatus": snapshot.health.status.value,
        "alerts": alerts_view(snapshot.alerts),
        "disk": disk_view(snapshot.disk, include_bytes=False) if snapshot.disk is not None else None,
        "history": [history_point_view(p) for p in snapshot.history],
        "processes": [process_view(p) for p in snapshot.processes],
        "timestamp": isoformat(snapshot.timestamp),
    }
