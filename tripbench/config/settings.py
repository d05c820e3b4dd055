"""tripbench settings loaded from environment variables."""

from enum import StrEnum
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(StrEnum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Pipeline-wide settings loaded from ``TRIPBENCH_*`` variables / .env file."""

    model_config = SettingsConfigDict(
        env_prefix="TRIPBENCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Storage ---
    DATA_DIR: Path = Field(
        default=Path("./data/system"),
        description="Root of per-map maps, scenarios, edits and prebaked results.",
    )
    CHECKPOINT_DIR: Path = Field(
        default=Path("./data/checkpoints"),
        description="Where resumable simulation checkpoints are written.",
    )

    # --- Simulation ---
    PREBAKE_SEED: int = Field(
        default=42,
        ge=0,
        description="Fixed RNG seed used for baseline (prebaked) runs.",
    )
    STEP_SECONDS: int = Field(
        default=60,
        gt=0,
        description="Simulation step size in seconds.",
    )
    CHECKPOINT_INTERVAL_SECONDS: int = Field(
        default=3600,
        gt=0,
        description="Simulated time between checkpoints.",
    )

    # --- Catalog ---
    DEV_CHALLENGES: bool = Field(
        default=True,
        description="Include work-in-progress challenge categories.",
    )

    # --- Logging ---
    LOG_LEVEL: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application log level.",
    )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
