"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets (push access token) come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - to_reminder_config() is the only bridge from settings to the core ReminderConfig

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults work out-of-the-box: local SQLite file, log-only delivery, reported location
    - lead_minutes defaults to 2 (test deployments); production sets REMINDER_LEAD_MINUTES=60
"""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.domain_types import OverlapPolicy
from app.core.reminder_config import ReminderConfig


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database (durable key-value store)
    database_url: str = "sqlite+aiosqlite:///./reminders.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres URLs come as postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 5
    database_max_overflow: int = 5

    # Reminder tuning
    reminder_lead_minutes: float = 2.0
    reminder_tolerance_minutes: float = 0.5
    reminder_radius_km: float = 8.0
    reminder_retention_days: float = 7.0
    reminder_dedup_hours: float = 24.0
    reminder_overlap_policy: OverlapPolicy = OverlapPolicy.DROP

    # Tick driver
    tick_interval_seconds: float = 60.0
    tick_timeout_seconds: float = 45.0
    tick_driver_autostart: bool = True

    # Location
    location_source: Literal["reported", "static"] = "reported"
    location_timeout_seconds: float = 10.0
    location_max_age_seconds: float = 300.0
    static_latitude: float = 6.7970301
    static_longitude: float = 79.8999734

    # Delivery
    notification_sender: Literal["log", "expo"] = "log"
    expo_push_url: str = "https://exp.host/--/api/v2/push/send"
    expo_access_token: str | None = None
    expo_push_token: str | None = None
    push_max_retries: int = 2
    push_base_delay_ms: int = 500
    push_max_delay_ms: int = 5_000
    push_timeout_seconds: float = 10.0

    # API
    cors_origins: list[str] = ["http://localhost:8081"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    def to_reminder_config(self) -> ReminderConfig:
        return ReminderConfig(
            lead_minutes=self.reminder_lead_minutes,
            tolerance_minutes=self.reminder_tolerance_minutes,
            radius_km=self.reminder_radius_km,
            retention_period=timedelta(days=self.reminder_retention_days),
            dedup_window=timedelta(hours=self.reminder_dedup_hours),
            tick_interval_seconds=self.tick_interval_seconds,
            location_timeout_seconds=self.location_timeout_seconds,
            tick_timeout_seconds=self.tick_timeout_seconds,
            overlap_policy=self.reminder_overlap_policy,
        ).validate()


@lru_cache
def get_settings() -> Settings:
    return Settings()
