"""
Application settings using Pydantic for validation and type safety.
All values can be overridden through environment variables or a .env file.
"""
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration with validation."""

    # Application
    app_name: str = Field(default="SlideTiming", description="Application name")
    debug: bool = Field(default=False, description="Debug mode flag")
    log_level: str = Field(default="INFO", description="Root logging level")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=7010, ge=1, le=65535, description="Server port")

    # Paths (relative to workspace root)
    data_dir: Path = Field(default=Path("data"), description="Data directory")

    # Fingerprint store
    store_backend: Literal["memory", "sqlite"] = Field(
        default="sqlite",
        description="Fingerprint store implementation"
    )
    sqlite_filename: str = Field(
        default="fingerprints.db",
        description="SQLite database file name inside the data directory"
    )

    @property
    def database_path(self) -> Path:
        """Get fingerprint database path."""
        return self.data_dir / self.sqlite_filename

    @property
    def has_persistent_store(self) -> bool:
        """Check if fingerprints survive a restart."""
        return self.store_backend == "sqlite"

    # Similarity matching
    title_threshold: float = Field(
        default=0.95,
        ge=0.0,
        le=1.0,
        description="Minimum (exclusive) title trigram similarity for tier 1"
    )
    content_threshold: float = Field(
        default=0.90,
        ge=0.0,
        le=1.0,
        description="Minimum (exclusive) content trigram similarity for tier 2"
    )

    # Aggregation
    iqr_multiplier: float = Field(
        default=1.5,
        gt=0.0,
        description="IQR multiplier for outlier bounds"
    )
    high_confidence_min_samples: int = Field(default=5, ge=1)
    high_confidence_max_cv: float = Field(default=0.3, gt=0.0)
    medium_confidence_min_samples: int = Field(default=3, ge=1)
    medium_confidence_max_cv: float = Field(default=0.5, gt=0.0)

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, v: Path) -> Path:
        """Ensure data directory path is valid."""
        return Path(v)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept any case, store upper case."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        env_prefix = ""
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Using lru_cache ensures settings are loaded once and reused.
    """
    return Settings()
