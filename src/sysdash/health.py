"""Composite health score and usage alert classification."""

from sysdash.models import Alerts, HealthReport, HealthStatus, Severity

# (threshold, deduction), highest threshold first; only the first match applies.
MEMORY_TIERS = ((90, 40), (75, 30), (60, 15), (50, 5))
CPU_TIERS = MEMORY_TIERS
DISK_TIERS = ((90, 20), (75, 15), (60, 7))


def _deduction(value: float, tiers: tuple[tuple[int, int], ...]) -> int:
    for threshold, penalty in tiers:
        if value > threshold:
            return penalty
    return 0


def score(memory_percent: float, cpu_percent: float, disk_percent: float = 0) -> int:
    """
    Score system health from 0 (critical) to 100 (idle).

    Each dimension loses the penalty of its highest exceeded tier. Memory and
    CPU can cost up to 40 points each, disk up to 20.
    """
    deductions = (
        _deduction(memory_percent, MEMORY_TIERS)
        + _deduction(cpu_percent, CPU_TIERS)
        + _deduction(disk_percent, DISK_TIERS)
    )
    return max(0, 100 - deductions)


def status(health_score: int) -> HealthStatus:
    """Label a score. Boundaries are independent of the scoring tiers."""
    if health_score >= 85:
        return HealthStatus.EXCELLENT
    if health_score >= 70:
        return HealthStatus.GOOD
    if health_score >= 50:
        return HealthStatus.WARNING
    return HealthStatus.CRITICAL


def evaluate(
    memory_percent: float,
    cpu_percent: float,
    disk_percent: float | None = None,
) -> HealthReport:
    """Score and label a reading. Unknown disk usage scores as 0%."""
    value = score(memory_percent, cpu_percent, disk_percent or 0)
    return HealthReport(
        score=value,
        status=status(value),
        memory_percent=memory_percent,
        cpu_percent=cpu_percent,
        disk_percent=disk_percent,
    )


def classify_usage(percent: float) -> Severity:
    if percent < 50:
        return Severity.SUCCESS
    if percent < 75:
        return Severity.INFO
    if percent < 90:
        return Severity.WARN
    return Severity.DANGER


def classify(
    memory_percent: float,
    cpu_percent: float,
    disk_percent: float | None = None,
) -> Alerts:
    """Classify each usage dimension; missing disk data stays unclassified."""
    return Alerts(
        memory=classify_usage(memory_percent),
        cpu=classify_usage(cpu_percent),
        disk=classify_usage(disk_percent) if disk_percent is not None else None,
    )
