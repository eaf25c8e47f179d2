# src/jobfeed/config.py
"""
Runtime settings read from environment variables (prefix JOBFEED_) or a `.env`
file in the project root. LOG_LEVEL is read without the prefix.
"""

from __future__ import annotations
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LISTING_URL = "https://ixmv8lw2lj.execute-api.us-east-2.amazonaws.com/linkedinDB/reading"
DEFAULT_SITES_URL = "https://lan4l8uk4f.execute-api.us-east-2.amazonaws.com/test/reading"

# Freshness window: 10 minutes
DEFAULT_CACHE_TTL = 10 * 60


class Settings(BaseSettings):
    # Safe defaults; override via environment or .env file
    listing_url: str = DEFAULT_LISTING_URL
    sites_url: str = DEFAULT_SITES_URL
    cache_ttl: float = Field(DEFAULT_CACHE_TTL, gt=0)
    http_timeout: float = Field(20.0, gt=0)
    http_retries: int = Field(1, ge=1)
    fetch_timeout: Optional[float] = Field(None, gt=0)
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_prefix="JOBFEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"
