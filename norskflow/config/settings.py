from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_profile_store_dir() -> str:
    """Default location for per-user profile and credential JSON files."""
    return str((Path.home() / ".norskflow").resolve())


class Settings(BaseSettings):
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str = Field(default="", validation_alias="LOG_FILE")

    intervals_base_url: str = Field(
        default="https://intervals.icu/api/v1",
        validation_alias="INTERVALS_BASE_URL",
        description="Intervals.icu REST API root",
    )
    intervals_timeout_s: float = Field(default=15.0, validation_alias="INTERVALS_TIMEOUT_S")
    workout_start_time: str = Field(
        default="08:00:00",
        validation_alias="WORKOUT_START_TIME",
        description="Local start time attached to every scheduled calendar event",
    )
    sync_external_id_prefix: str = Field(default="norskflow", validation_alias="SYNC_EXTERNAL_ID_PREFIX")

    open_meteo_forecast_url: str = Field(
        default="https://api.open-meteo.com/v1/forecast",
        validation_alias="OPEN_METEO_FORECAST_URL",
    )
    weather_timeout_s: float = Field(default=10.0, validation_alias="WEATHER_TIMEOUT_S")

    profile_store_dir: str = Field(
        default_factory=get_profile_store_dir,
        validation_alias="PROFILE_STORE_DIR",
    )

    treadmill_incline_min: float = Field(default=0.0, validation_alias="TREADMILL_INCLINE_MIN")
    treadmill_incline_max: float = Field(default=15.0, validation_alias="TREADMILL_INCLINE_MAX")
    treadmill_incline_default: float = Field(default=1.0, validation_alias="TREADMILL_INCLINE_DEFAULT")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("workout_start_time")
    @classmethod
    def validate_start_time(cls, value: str) -> str:
        """Start time must look like HH:MM:SS; anything else falls back to 08:00:00."""
        parts = value.split(":")
        if len(parts) != 3 or not all(p.isdigit() and len(p) == 2 for p in parts):
            logger.warning(f"Invalid WORKOUT_START_TIME '{value}'. Defaulting to 08:00:00.")
            return "08:00:00"
        return value

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
