"""AdLens — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Upstream Ads API ──
    upstream_base_url: str = "http://localhost:3001/api"
    upstream_timeout_seconds: float = 30.0
    fetch_max_retries: int = 5
    fetch_retry_delay_ms: int = 1000
    fetch_concurrency: int = 20
    insights_fetch_concurrency: int = 30  # insights are by far the largest collection

    # ── Database ──
    database_url: str = ""
    insight_insert_chunk_size: int = 5000

    # ── Reports ──
    performance_cache_ttl_seconds: int = 300

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = False
    sync_hour: int = 3  # Daily re-sync at 3 AM when enabled

    # ── Upstream Simulator ──
    simulator_data_dir: str = "./data"
    simulator_port: int = 3001
    simulator_error_rate: float = 0.10
    simulator_rate_limit_rate: float = 0.05
    simulator_retry_after_ms: int = 1000
    simulator_response_delay_ms: int = 5000

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/adlens.db"
        return "sqlite:///./adlens.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
