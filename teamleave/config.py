"""Engine configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from ``TEAMLEAVE_*`` environment variables."""

    # Clock
    TIMEZONE: str = "UTC"

    # Competition matching
    PARTIAL_OVERLAP_WINDOW_DAYS: int = 30

    # Parental leave pool
    DEFAULT_PARENTAL_LEAVE_DAYS: int = 90

    model_config = SettingsConfigDict(
        env_prefix="TEAMLEAVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
