"""structlog setup shared by the server and the dashboard."""

import sys
from typing import TextIO

import structlog

_NAME_TO_LEVEL = {
    "debug": 10,
    "info": 20,
    "warning": 30,
    "warn": 30,
    "error": 40,
    "critical": 50,
}


def level_from_name(name: str) -> int:
    """Map a level name to its numeric value, falling back to info."""
    return _NAME_TO_LEVEL.get(name.lower(), 20)


def configure_logging(level: str = "info", stream: TextIO | None = None) -> None:
    """Configure structlog for JSON output on ``stream`` (stdout by default)."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_from_name(level)),
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )
