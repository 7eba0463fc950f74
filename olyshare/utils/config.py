"""
Configuration management for olyshare.

Uses pydantic-settings to load configuration from environment variables
and .env files. Command line flags override these values.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Camera Configuration
    camera_url: str = "http://192.168.0.10"
    listing_path: str = "/get_imglist.cgi?DIR=/DCIM/100OLYMP"

    # Storage Configuration
    cache_dir: Path = Path(".cache")
    out_dir: Path = Path("output")

    # Import Configuration
    copy_days: int = 1
    import_workers: int = 2
    skip_movie: bool = False
    skip_raw: bool = False
    undated_policy: Literal["fail", "skip"] = "fail"

    # Content types dropped by --skip-movie / --skip-raw
    movie_content_types: str = "video/quicktime,video/x-msvideo"
    raw_content_types: str = "image/x-olympus-orf"

    # HTTP Configuration
    http_timeout: float = 30.0

    # Link downloader
    gget_workers: int = 2

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def get_movie_content_types(self) -> list[str]:
        """Parse movie content types into list."""
        return [t.strip() for t in self.movie_content_types.split(',') if t.strip()]

    def get_raw_content_types(self) -> list[str]:
        """Parse raw content types into list."""
        return [t.strip() for t in self.raw_content_types.split(',') if t.strip()]

    def get_skip_content_types(self) -> set[str]:
        """Content types excluded from import given the skip flags."""
        skipped: set[str] = set()
        if self.skip_movie:
            skipped.update(self.get_movie_content_types())
        if self.skip_raw:
            skipped.update(self.get_raw_content_types())
        return skipped


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
