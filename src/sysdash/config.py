from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Logging
    sysdash_log_level: str = "info"

    # HTTP server
    sysdash_host: str = "127.0.0.1"
    sysdash_port: int = 3000
    sysdash_cors_origins: str = "*"

    # Sampling
    sysdash_history_size: int = 20
    sysdash_enrichment_timeout: float = 2.0  # seconds, disk and process reads
    sysdash_process_limit: int = 50
    sysdash_snapshot_process_limit: int = 5
    sysdash_disk_path: str | None = None  # None = root or system drive

    # Background polling inside the server
    sysdash_background_poll: bool = False
    sysdash_poll_interval_ms: int = 5000

    model_config = {"env_prefix": "", "case_sensitive": False, "env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.sysdash_cors_origins.split(",") if o.strip()]


settings = Settings()
