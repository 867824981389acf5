"""sysdash - terminal dashboard."""

from enum import Enum
from queue import Empty, Queue

import structlog
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.css.query import NoMatches
from textual.widgets import DataTable, Footer, Label, Sparkline, Static
from textual.widgets.data_table import CellDoesNotExist, DuplicateKey, RowDoesNotExist

from sysdash.assembler import SnapshotAssembler
from sysdash.models import FullSnapshot, HealthStatus, ProcessSnapshot, Severity
from sysdash.monitor import PollingScheduler
from sysdash.views import format_gb

logger = structlog.get_logger()

REFRESH_RATES_MS = (2000, 5000, 10000, 30000)

_STATUS_COLORS = {
    HealthStatus.EXCELLENT: "green",
    HealthStatus.GOOD: "cyan",
    HealthStatus.WARNING: "yellow",
    HealthStatus.CRITICAL: "red",
}

_SEVERITY_COLORS = {
    Severity.SUCCESS: "green",
    Severity.INFO: "blue",
    Severity.WARN: "yellow",
    Severity.DANGER: "red",
}


class SortKey(Enum):
    """Sort keys for the process table."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"
    USER = "user"


def usage_bar(percent: float, color: str, width: int = 20) -> str:
    """Render a percentage as a fixed-width bar with escaped brackets."""
    filled = min(max(int(percent / (100 / width)), 0), width)
    return f"\\[[{color}]{'█' * filled}[/{color}][dim]{'░' * (width - filled)}[/dim]]"


def format_uptime(snapshot: FullSnapshot) -> str:
    uptime = snapshot.uptime
    return f"{uptime.days}d {uptime.hours}h {uptime.minutes}m {uptime.secs}s"


class HeaderStats(Static):
    """Header widget showing health, CPU, memory, load and disk."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._snapshot: FullSnapshot | None = None
        self._interval_ms: int = 0

    @property
    def snapshot(self) -> FullSnapshot | None:
        return self._snapshot

    def compose(self) -> ComposeResult:
        yield Horizontal(
            Static(self._get_health_info(), id="health-info"),
            Static(self._get_usage_info(), id="usage-info"),
        )

    def update_stats(self, snapshot: FullSnapshot, interval_ms: int) -> None:
        """Update the statistics from a full snapshot."""
        self._snapshot = snapshot
        self._interval_ms = interval_ms
        self._refresh_display()

    def _refresh_display(self) -> None:
        try:
            self.query_one("#health-info", Static).update(self._get_health_info())
            self.query_one("#usage-info", Static).update(self._get_usage_info())
        except NoMatches:
            pass  # Widget not mounted yet

    def _get_health_info(self) -> str:
        snapshot = self._snapshot
        if snapshot is None:
            return "Loading system health..."

        report = snapshot.health
        color = _STATUS_COLORS[report.status]
        info = snapshot.system_info
        return (
            f"Health: [{color}]{report.score} ({report.status.value.capitalize()})[/{color}]\n"
            f"Host: {info.hostname} ({info.type} {info.release}, {info.architecture})\n"
            f"Uptime: {format_uptime(snapshot)}\n"
            f"Updated: {snapshot.timestamp:%H:%M:%S}  every {self._interval_ms / 1000:g}s"
        )

    def _get_usage_info(self) -> str:
        snapshot = self._snapshot
        if snapshot is None:
            return "Loading usage..."

        alerts = snapshot.alerts
        cpu_color = _SEVERITY_COLORS[alerts.cpu]
        mem_color = _SEVERITY_COLORS[alerts.memory]
        memory = snapshot.memory
        load = snapshot.load

        lines = [
            f"CPU {usage_bar(snapshot.cpu.usage, cpu_color)} {snapshot.cpu.usage:3d}%"
            f"  {snapshot.cpu.cores} cores",
            f"Mem {usage_bar(memory.used_percent, mem_color)} "
            f"{format_gb(memory.used)}G/{format_gb(memory.total)}G",
        ]
        if snapshot.disk is not None and alerts.disk is not None:
            disk_color = _SEVERITY_COLORS[alerts.disk]
            lines.append(
                f"Dsk {usage_bar(snapshot.disk.used_percent, disk_color)} "
                f"{format_gb(snapshot.disk.used)}G/{format_gb(snapshot.disk.total)}G"
            )
        else:
            lines.append("Dsk unavailable")
        lines.append(f"Load average: {load.one:.2f} {load.five:.2f} {load.fifteen:.2f}")
        return "\n".join(lines)


class HistoryCharts(Horizontal):
    """CPU and memory sparklines drawn from the rolling history."""

    DEFAULT_CSS = """
    HistoryCharts {
        height: 4;
    }

    HistoryCharts Vertical {
        width: 1fr;
        padding: 0 1;
    }

    HistoryCharts Sparkline {
        height: 2;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label("CPU history")
            yield Sparkline([], summary_function=max, id="cpu-sparkline")
        with Vertical():
            yield Label("Memory history")
            yield Sparkline([], summary_function=max, id="mem-sparkline")

    def update_history(self, snapshot: FullSnapshot) -> None:
        self.query_one("#cpu-sparkline", Sparkline).data = [p.cpu_usage for p in snapshot.history]
        self.query_one("#mem-sparkline", Sparkline).data = [p.memory_usage for p in snapshot.history]


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._current_pids: set[int] = set()
        self._processes: list[ProcessSnapshot] = []
        self._sort_key: SortKey = SortKey.CPU
        self._sort_reverse: bool = True  # Default: descending for CPU

    @property
    def sort_key(self) -> SortKey:
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        self._sort_key = keys[(keys.index(self._sort_key) + 1) % len(keys)]
        self._sort_reverse = self._sort_key in (SortKey.CPU, SortKey.MEM)
        try:
            self._apply_order(self.query_one("#process-table", DataTable))
        except NoMatches:
            pass  # Widget not mounted yet
        return self._sort_key

    def compose(self) -> ComposeResult:
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("USER", key="user", width=10)
        table.add_column("S", key="status", width=10)
        table.add_column("CPU%", key="cpu", width=8)
        table.add_column("MEM%", key="mem", width=8)
        table.add_column("Name", key="name")

    def update_processes(self, processes: list[ProcessSnapshot]) -> None:
        """
        Update the process table with new data.

        Existing rows are updated in place, rows of exited processes are
        removed, then the whole table is reordered by the current sort key.
        """
        table = self.query_one("#process-table", DataTable)
        new_pids = {proc.pid for proc in processes}

        for pid in self._current_pids - new_pids:
            try:
                table.remove_row(str(pid))
            except RowDoesNotExist:
                pass

        for proc in processes:
            row_key = str(proc.pid)
            if proc.pid in self._current_pids:
                self._update_row(table, row_key, proc)
            else:
                self._add_row(table, row_key, proc)

        self._current_pids = new_pids
        self._processes = list(processes)
        self._apply_order(table)

    def _apply_order(self, table: DataTable) -> None:
        rank = {str(proc.pid): index for index, proc in enumerate(self._sort_processes(self._processes))}
        table.sort("pid", key=lambda pid: rank.get(pid, len(rank)))

    def _sort_processes(self, processes: list[ProcessSnapshot]) -> list[ProcessSnapshot]:
        key_func = {
            SortKey.CPU: lambda p: (p.cpu_percent, p.memory_percent),
            SortKey.MEM: lambda p: p.memory_percent,
            SortKey.PID: lambda p: p.pid,
            SortKey.USER: lambda p: p.username.lower(),
        }
        return sorted(processes, key=key_func[self._sort_key], reverse=self._sort_reverse)

    def _update_row(self, table: DataTable, row_key: str, proc: ProcessSnapshot) -> None:
        try:
            table.update_cell(row_key, "user", proc.username[:10])
            table.update_cell(row_key, "status", proc.status)
            table.update_cell(row_key, "cpu", f"{proc.cpu_percent:5.1f}")
            table.update_cell(row_key, "mem", f"{proc.memory_percent:5.1f}")
            table.update_cell(row_key, "name", proc.name[:50])
        except CellDoesNotExist:
            pass  # Row may have been removed

    def _add_row(self, table: DataTable, row_key: str, proc: ProcessSnapshot) -> None:
        try:
            table.add_row(
                str(proc.pid),
                proc.username[:10],
                proc.status,
                f"{proc.cpu_percent:5.1f}",
                f"{proc.memory_percent:5.1f}",
                proc.name[:50],
                key=row_key,
            )
        except DuplicateKey:
            pass


class SysdashApp(App):
    """Terminal dashboard polling a SnapshotAssembler."""

    TITLE = "sysdash"
    SUB_TITLE = "System Dashboard"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        height: auto;
        min-height: 6;
    }

    Horizontal {
        height: auto;
    }

    #health-info {
        width: 1fr;
        padding-right: 2;
    }

    #usage-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Refresh"),
        ("f5", "cycle_refresh_rate", "Rate"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(self, assembler: SnapshotAssembler, interval_ms: int = 5000) -> None:
        super().__init__()
        self._assembler = assembler
        self._update_queue: Queue[FullSnapshot] = Queue()
        self._scheduler = PollingScheduler(assembler, self._update_queue, interval_ms=interval_ms)

    @property
    def scheduler(self) -> PollingScheduler:
        return self._scheduler

    def compose(self) -> ComposeResult:
        yield HeaderStats(id="header-stats")
        yield HistoryCharts(id="history-charts")
        yield ProcessTable()
        yield Footer()

    def on_mount(self) -> None:
        self._scheduler.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain the queue and render the most recent snapshot."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            self._update_ui(snapshot)

    def _update_ui(self, snapshot: FullSnapshot) -> None:
        self.query_one("#header-stats", HeaderStats).update_stats(snapshot, self._scheduler.interval_ms)
        self.query_one(HistoryCharts).update_history(snapshot)
        self.query_one(ProcessTable).update_processes(list(snapshot.processes))

    def _refresh_now(self) -> None:
        try:
            self._scheduler.collect_now()
        except Exception as e:
            logger.exception("manual_refresh_failed")
            self.call_from_thread(self.notify, f"Refresh failed: {e}", severity="error")

    def action_refresh(self) -> None:
        """Collect immediately, alongside the scheduled polling."""
        self.run_worker(self._refresh_now, thread=True, group="refresh")

    def action_cycle_refresh_rate(self) -> None:
        current = self._scheduler.interval_ms
        index = REFRESH_RATES_MS.index(current) if current in REFRESH_RATES_MS else -1
        new_rate = REFRESH_RATES_MS[(index + 1) % len(REFRESH_RATES_MS)]
        self._scheduler.set_interval(new_rate)
        self.notify(f"Refresh: {new_rate / 1000:g}s")

    def action_sort(self) -> None:
        new_sort_key = self.query_one(ProcessTable).cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def on_unmount(self) -> None:
        self._scheduler.stop()

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._scheduler.stop()
        self.exit()
