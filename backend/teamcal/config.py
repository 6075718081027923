"""Application configuration management."""
from pydantic_settings import BaseSettings
from functools import lru_cache
import subprocess
import logging


class Settings(BaseSettings):
    """Application settings."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./teamcal.db"

    @property
    def async_database_url(self) -> str:
        """Get DATABASE_URL with asyncpg driver for async SQLAlchemy.

        Converts postgresql:// to postgresql+asyncpg:// automatically.
        """
        if self.DATABASE_URL.startswith("postgresql://"):
            return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.DATABASE_URL

    @property
    def is_postgres(self) -> bool:
        return self.async_database_url.startswith("postgresql+asyncpg://")

    # Application
    ENVIRONMENT: str = "development"  # development, staging, or production
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:8081"]

    # Team notifications (optional - notices are only logged when unset)
    NOTIFY_WEBHOOK_URL: str = ""  # e.g. https://<project>.functions.example/notify-team-event
    NOTIFY_WEBHOOK_TOKEN: str = ""  # Sent as a Bearer token
    NOTIFY_TIMEOUT_SECONDS: float = 10.0

    # Recurring events
    RECURRENCE_MAX_MONTHS: int = 2  # Longest series allowed, counted from the first date

    # Calendar views
    CALENDAR_PAST_MONTHS: int = 1  # Default window start when the caller gives none
    CALENDAR_FUTURE_MONTHS: int = 6  # Default window end when the caller gives none
    CALENDAR_QUERY_LIMIT: int = 500  # Max events returned by a single range query

    # Calendar subscription feed
    ICS_CALENDAR_NAME: str = "Team Calendar"
    ICS_PRODID: str = "-//teamcal//Team Calendar//EN"

    # Background jobs
    SCHEDULER_ENABLED: bool = True
    RSVP_REMINDER_ENABLED: bool = False
    RSVP_REMINDER_INTERVAL_HOURS: int = 24  # How often to look for tomorrow's events

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def get_version() -> str:
    """
    Get application version string.

    In staging: Returns version with commit hash (e.g., "v1.0.0+abc1234")
    Elsewhere: Returns clean version (e.g., "v1.0.0")
    """
    from teamcal.version import VERSION

    settings = get_settings()
    version_str = f"v{VERSION}"

    if settings.ENVIRONMENT == "staging":
        try:
            commit_hash = subprocess.check_output(
                ["git", "rev-parse", "--short=7", "HEAD"],
                stderr=subprocess.DEVNULL,
                text=True
            ).strip()
            version_str = f"{version_str}+{commit_hash}"
        except (subprocess.CalledProcessError, FileNotFoundError):
            logger = logging.getLogger(__name__)
            logger.warning("Could not retrieve git commit hash for version string")

    return version_str
