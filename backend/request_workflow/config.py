"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./event_requests.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Local calendar used for "today" and for the day an event falls on
    TIMEZONE: str = "Asia/Manila"

    # Review lifecycle windows
    REVIEW_EXPIRY_HOURS: int = 72
    CONFIRMATION_WINDOW_HOURS: int = 48
    RESCHEDULE_DECLINE_POLICY: str = "reject"  # "reject" | "rereview"
    EXPIRY_SWEEP_INTERVAL_SECONDS: int = 300  # 0 disables the background sweep

    # Scheduling policy defaults; overridden by the system_settings row
    MAX_EVENTS_PER_DAY: int = 3
    MAX_BLOOD_BAGS_PER_DAY: int = 200
    ALLOW_WEEKEND_EVENTS: bool = False
    ADVANCE_BOOKING_DAYS: int = 30
    MAX_PENDING_REQUESTS: int = 1
    PREVENT_OVERLAPPING_REQUESTS: bool = True
    PREVENT_DOUBLE_BOOKING: bool = True
    BLOCKED_WEEKDAYS: list[int] = []
    BLOCKED_DATES: list[str] = []

    class Config:
        env_file = ".env"


settings = Settings()
