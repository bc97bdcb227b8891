# app/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./pool_occupancy.db"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8080

    # ── CrowdMonitor upstream ─────────────────────────────────────────────
    CROWDMONITOR_WS_URL: str = "wss://badi-public.crowdmonitor.ch:9591/api"
    SCRAPE_COMMAND: str = "all"
    SCRAPE_SEND_DELAY_SECONDS: float = 0.5    # Provider expects a short pause before the command
    SCRAPE_TIMEOUT_SECONDS: float = 10.0      # Whole request/response must finish within this

    # ── Scheduler ─────────────────────────────────────────────────────────
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_RUN_ON_START: bool = True
    SCRAPE_INTERVAL_MINUTES: int = 5

    # ── Retention ─────────────────────────────────────────────────────────
    RETENTION_DAYS: int = 90
    CLEANUP_HOUR_UTC: int = 0                  # Cleanup runs on the first tick(s) of this hour
    CLEANUP_WINDOW_MINUTES: int = 5

    # ── History queries ───────────────────────────────────────────────────
    HISTORY_DEFAULT_HOURS: int = 24
    HISTORY_MIN_HOURS: int = 1
    HISTORY_MAX_HOURS: int = 168 * 4           # 4 weeks

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
