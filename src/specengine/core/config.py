"""Configuration Management."""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


DEFAULT_WRAPPER_SUFFIXES = ["-container", "-inner", "-wrapper", "-content", "-section"]


class Settings(BaseSettings):
    """Engine settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="SPEC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")

    # Memoization
    enable_cache: bool = Field(default=True, description="Memoize pipeline results")
    cache_size: int = Field(default=64, gt=0, description="Cache max size")
    cache_ttl: int = Field(default=300, gt=0, description="Cache TTL (seconds)")

    # Input limits
    max_spec_bytes: int = Field(default=512 * 1024, gt=0, description="Max raw snapshot size")
    max_json_depth: int = Field(default=32, gt=0, description="Max snapshot nesting depth")

    # Reconciliation scoring
    score_label: int = Field(default=10, ge=0, description="Equal label-like prop")
    score_binding: int = Field(default=5, ge=0, description="Per shared state binding")
    score_child_types: int = Field(default=3, ge=0, description="Equal child type multiset")
    score_position: int = Field(default=2, ge=0, description="Same sibling position")

    # Repair
    wrapper_suffixes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_WRAPPER_SUFFIXES),
        description="Suffixes tried when a referenced id is missing",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
