"""Tests for settings, logging setup and the error envelope."""

import io
import json

import structlog

from sysdash.config import Settings
from sysdash.errors import PreconditionViolation, ProviderUnavailable, SysdashError
from sysdash.logs import configure_logging, level_from_name


class TestSettings:
    def test_defaults(self):
        cfg = Settings(_env_file=None)

        assert cfg.sysdash_port == 3000
        assert cfg.sysdash_history_size == 20
        assert cfg.sysdash_process_limit == 50
        assert cfg.sysdash_snapshot_process_limit == 5
        assert cfg.sysdash_background_poll is False

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SYSDASH_POLL_INTERVAL_MS", "2000")
        monkeypatch.setenv("SYSDASH_BACKGROUND_POLL", "true")

        cfg = Settings(_env_file=None)

        assert cfg.sysdash_poll_interval_ms == 2000
        assert cfg.sysdash_background_poll is True

    def test_cors_origins_split(self):
        cfg = Settings(sysdash_cors_origins="http://a.test, http://b.test,", _env_file=None)

        assert cfg.cors_origins == ["http://a.test", "http://b.test"]


class TestLogging:
    def test_level_names(self):
        assert level_from_name("DEBUG") == 10
        assert level_from_name("warn") == 30
        assert level_from_name("nonsense") == 20

    def test_json_output_and_filtering(self):
        stream = io.StringIO()
        configure_logging("warning", stream=stream)
        try:
            logger = structlog.get_logger()
            logger.info("hidden_event")
            logger.warning("disk_unavailable", error="timed out")
        finally:
            structlog.reset_defaults()

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert len(lines) == 1
        assert lines[0]["event"] == "disk_unavailable"
        assert lines[0]["level"] == "warning"
        assert lines[0]["error"] == "timed out"
        assert "timestamp" in lines[0]


class TestErrors:
    def test_provider_unavailable_envelope(self):
        error = ProviderUnavailable("disk read failed", details={"reason": "EIO"})

        assert isinstance(error, SysdashError)
        assert error.to_dict() == {
            "error": {
                "code": "provider_unavailable",
                "message": "disk read failed",
                "status": 500,
                "details": {"reason": "EIO"},
            }
        }

    def test_envelope_omits_empty_details(self):
        assert "details" not in PreconditionViolation().to_dict()["error"]
