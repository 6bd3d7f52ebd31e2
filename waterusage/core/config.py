"""Application configuration settings."""

import os
from decimal import Decimal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_database_url() -> str:
    """Get the default database URL, using the mounted volume path if available."""
    if os.path.isdir("/data"):
        return "sqlite:////data/waterusage.db"
    return "sqlite:///./waterusage.db"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Waterusage"
    VERSION: str = "0.1.0"
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Database - defaults to the /data volume if it exists
    DATABASE_URL: str = _get_default_database_url()

    # Readings are accepted from OPEN_DAY through CLOSE_DAY of each month.
    # CLOSE_DAY is capped to the last day of shorter months.
    SUBMISSION_OPEN_DAY: int = 1
    SUBMISSION_CLOSE_DAY: int = 31

    # Billing policy
    PAYMENT_DUE_MONTHS: int = 1
    OVERDUE_GRACE_DAYS: int = 30
    BASELINE_LOOKBACK_MONTHS: int | None = None

    # Submissions whose per-slot increase exceeds this volume get a warning
    READING_JUMP_WARNING_VOLUME: Decimal = Decimal("30")

    @model_validator(mode="after")
    def validate_submission_window(self) -> "Settings":
        """Reject a window that cannot be satisfied on any day."""
        for day in (self.SUBMISSION_OPEN_DAY, self.SUBMISSION_CLOSE_DAY):
            if not 1 <= day <= 31:
                raise ValueError("Submission window days must be between 1 and 31")
        if self.SUBMISSION_OPEN_DAY > self.SUBMISSION_CLOSE_DAY:
            raise ValueError("SUBMISSION_OPEN_DAY must not be after SUBMISSION_CLOSE_DAY")
        return self


settings = Settings()
