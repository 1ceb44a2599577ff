"""
Application settings and configuration management.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from brandguide import __version__

_DEFAULT_THUMBNAIL_SIZES: dict[str, int] = {
    "small": 200,
    "medium": 400,
    "large": 800,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="brandguide")
    app_version: str = Field(default=__version__)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./brandguide.db")
    db_log_queries: bool = Field(default=False)

    # Storage
    cache_dir: Path = Field(default=Path("./uploads"))
    thumbnail_cache_subdir: str = Field(default="drive-thumbnails")

    # Drive thumbnail cache
    thumbnail_ttl_days: float = Field(default=7.0)
    thumbnail_fetch_timeout: float = Field(default=10.0)
    thumbnail_max_bytes: int = Field(default=5 * 1024 * 1024)
    thumbnail_max_concurrent_fetches: int = Field(default=5)
    thumbnail_reap_interval: float = Field(default=3600.0)
    thumbnail_sizes: Annotated[dict[str, int], NoDecode] = Field(
        default_factory=lambda: dict(_DEFAULT_THUMBNAIL_SIZES)
    )

    # Google Drive
    drive_api_base_url: str = Field(default="https://www.googleapis.com/drive/v3")
    drive_access_token: str = Field(default="")

    @field_validator("cache_dir", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """Ensure directory paths are Path objects."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("thumbnail_ttl_days")
    @classmethod
    def validate_ttl(cls, v: float) -> float:
        """Retention window must be positive."""
        if v <= 0:
            raise ValueError("thumbnail_ttl_days must be greater than zero")
        return v

    @field_validator("thumbnail_max_concurrent_fetches")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """At least one fetch must be allowed."""
        if v < 1:
            raise ValueError("thumbnail_max_concurrent_fetches must be >= 1")
        return v

    @field_validator("thumbnail_sizes", mode="before")
    @classmethod
    def parse_thumbnail_sizes(cls, v: str | dict[str, int]) -> dict[str, int]:
        """Parse ``small=200,medium=400`` strings into a size mapping."""
        if isinstance(v, str):
            parsed: dict[str, int] = {}
            for item in v.split(","):
                item = item.strip()
                if not item:
                    continue
                name, sep, pixels = item.partition("=")
                if not sep:
                    raise ValueError(
                        f"Invalid thumbnail size entry '{item}', expected name=pixels"
                    )
                parsed[name.strip().lower()] = int(pixels)
            v = parsed
        if not v:
            raise ValueError("At least one thumbnail size must be configured")
        for name, pixels in v.items():
            if int(pixels) <= 0:
                raise ValueError(f"Thumbnail size '{name}' must be positive")
        return {str(name).lower(): int(pixels) for name, pixels in v.items()}

    @property
    def thumbnail_cache_dir(self) -> Path:
        """Root directory for cached Drive thumbnails."""
        return self.cache_dir / self.thumbnail_cache_subdir

    def create_directories(self) -> None:
        """Create required directories if they don't exist."""
        for directory in [self.cache_dir, self.thumbnail_cache_dir]:
            directory.mkdir(parents=True, exist_ok=True)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


# Global settings instance
settings = get_settings()
