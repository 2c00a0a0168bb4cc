from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ping_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias="TIMERLINK_PING_TIMEOUT_SECONDS",
        description="Seconds before an unanswered ping is reported as failed",
    )
    tick_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        validation_alias="TIMERLINK_TICK_INTERVAL_SECONDS",
        description="Timer tick and synthetic heart-rate interval",
    )
    synthetic_heart_rate: bool = Field(default=False, validation_alias="TIMERLINK_SYNTHETIC_HEART_RATE")
    dedupe_exercise: bool = Field(
        default=False,
        validation_alias="TIMERLINK_DEDUPE_EXERCISE",
        description="Omit an unchanged exercise from running timer-state messages",
    )
    auto_connect: bool = Field(
        default=False,
        validation_alias="TIMERLINK_AUTO_CONNECT",
        description="Start heart-rate collection as soon as the companion is ready",
    )
    countdown_seconds: int = Field(default=5, ge=1, validation_alias="TIMERLINK_COUNTDOWN_SECONDS")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="TIMERLINK_LOG_FILE")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(sorted(valid_levels))}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
