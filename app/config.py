# app/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./smart_parking.db"
    DB_TIMEOUT_SECONDS: int = 5                 # Driver busy timeout
    SEED_DEFAULT_DATA: bool = True              # Seed admin/consumer + S1..S3 on startup

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 3000

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on API endpoints

    # ── Access window ─────────────────────────────────────────────────────
    ACCESS_GRACE_MINUTES: int = 5               # ± around booking start
    AUTO_CANCEL_GRACE_MINUTES: int = 5          # No-show cutoff after start

    # ── Gates ─────────────────────────────────────────────────────────────
    GATE_OPEN_SECONDS: float = 10.0
    EMERGENCY_GATE_OPEN_SECONDS: float = 15.0

    # ── Background jobs ───────────────────────────────────────────────────
    ENABLE_BACKGROUND_JOBS: bool = True
    AUTO_CANCEL_INTERVAL_SECONDS: float = 30.0
    LOT_STATUS_INTERVAL_SECONDS: float = 10.0

    # ── Billing ───────────────────────────────────────────────────────────
    PARKING_RATE_PER_HOUR: float = 4.00
    MINIMUM_CHARGE: float = 2.00

    # ── Timeouts ──────────────────────────────────────────────────────────
    OPERATION_TIMEOUT_SECONDS: float = 5.0      # Max wait for a per-slot lock

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None               # Defaults to <repo>/logs
    LOG_FILE: str = "smart_parking.log"
    EVENT_LOG_FILE: str = "events.log"          # State-machine audit trail mirror
    LOG_MAX_MB: int = 5
    LOG_BACKUP_COUNT: int = 10

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
