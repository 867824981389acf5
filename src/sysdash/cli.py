import sys

import typer
import uvicorn

from sysdash.config import settings
from sysdash.logs import configure_logging

_UVICORN_LEVELS = {
    "debug": "debug",
    "info": "info",
    "warning": "warning",
    "warn": "warning",
    "error": "error",
    "critical": "critical",
}

cli_app = typer.Typer(name="sysdash", help="System telemetry API and terminal dashboard")


@cli_app.command("serve")
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (default: SYSDASH_HOST)"),
    port: int = typer.Option(None, "--port", help="Bind port (default: SYSDASH_PORT)"),
):
    """Run the HTTP API."""
    from sysdash.api import create_app

    configure_logging(settings.sysdash_log_level)
    uvicorn.run(
        create_app(settings=settings),
        host=host or settings.sysdash_host,
        port=port or settings.sysdash_port,
        log_level=_UVICORN_LEVELS.get(settings.sysdash_log_level.lower(), "info"),
    )


@cli_app.command("dashboard")
def dashboard(
    interval_ms: int = typer.Option(None, "--interval-ms", help="Refresh interval in milliseconds"),
):
    """Run the terminal dashboard."""
    from sysdash.app import SysdashApp
    from sysdash.assembler import SnapshotAssembler
    from sysdash.history import HistoryBuffer
    from sysdash.providers import PsutilProvider

    # Keep log lines off the screen the dashboard draws on
    configure_logging("error", stream=sys.stderr)
    assembler = SnapshotAssembler(
        PsutilProvider(settings.sysdash_disk_path),
        history=HistoryBuffer(settings.sysdash_history_size),
        enrichment_timeout=settings.sysdash_enrichment_timeout,
        snapshot_process_limit=settings.sysdash_process_limit,
    )
    try:
        SysdashApp(assembler, interval_ms=interval_ms or settings.sysdash_poll_interval_ms).run()
    finally:
        assembler.close()


def main() -> None:
    """Entry point for the sysdash command."""
    cli_app()


if __name__ == "__main__":
    main()
