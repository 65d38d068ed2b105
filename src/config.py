from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Ping sweep
    sweep_interval_seconds: float = 3.0
    probe_timeout_seconds: float = 10.0

    # Inactive-account reaper
    reaper_enabled: bool = True
    reaper_interval_seconds: float = 3600.0  # hourly
    retention_days: float = 2.0  # accounts idle longer than this are deleted

    # Sessions (in-memory only, lost on restart)
    session_lifetime_hours: float = 24.0

    # Persistence (whole account list, rewritten on every flush)
    accounts_file: str = "data/users.json"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000

    # Logging
    log_level: str = "INFO"


settings = Settings()
