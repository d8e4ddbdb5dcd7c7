"""
Verdict Centralized Configuration

Provides validated, type-safe access to environment variables using Pydantic Settings.

Usage:
    from verdict.core.config import get_settings

    settings = get_settings()
    if settings.log_level == "DEBUG":
        ...

Environment Variables:
    VERDICT_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    VERDICT_DEBUG: Legacy debug flag (enables DEBUG level if set)
    VERDICT_LOG_JSON: Output logs as JSON
    VERDICT_DELIVERY_TIMEOUT: Callback delivery timeout in seconds
    VERDICT_DELIVERY_USER_AGENT: User-Agent header sent with callback deliveries
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .. import __version__


def _find_project_env_file() -> Path | None:
    """
    Find .env file by searching for the project root marker.

    Searches upward from this file's location for pyproject.toml,
    then checks for .env in that directory.
    """
    current = Path(__file__).resolve().parent

    for _ in range(10):  # Limit search depth
        if (current / "pyproject.toml").exists():
            env_file = current / ".env"
            if env_file.exists():
                return env_file
            return None
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


_ENV_FILE = _find_project_env_file()


class VerdictSettings(BaseSettings):
    """
    Verdict configuration settings with validation.

    Environment variables are automatically loaded with the VERDICT_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="VERDICT_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Log level for verdict components",
    )

    debug: bool = Field(
        default=False,
        description="Legacy debug flag (enables DEBUG level if set)",
    )

    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format for machine parsing",
    )

    # =========================================================================
    # Delivery Configuration
    # =========================================================================

    delivery_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for a single callback delivery",
    )

    delivery_user_agent: str = Field(
        default=f"verdict/{__version__}",
        description="User-Agent header sent with callback deliveries",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def effective_log_level(self) -> str:
        """
        Get effective log level, respecting legacy VERDICT_DEBUG.

        Priority:
        1. Explicit VERDICT_LOG_LEVEL
        2. VERDICT_DEBUG=1 -> DEBUG
        3. Default: WARNING
        """
        if self.debug and self.log_level == "WARNING":
            return "DEBUG"
        return self.log_level

    @property
    def log_level_int(self) -> int:
        """Get effective log level as logging constant."""
        return getattr(logging, self.effective_log_level)


# =============================================================================
# Singleton Accessor
# =============================================================================


@lru_cache(maxsize=1)
def get_settings() -> VerdictSettings:
    """
    Get the singleton settings instance.

    The settings are validated at first access.
    """
    return VerdictSettings()


def reset_settings() -> None:
    """
    Reset the settings cache (for testing).

    After calling this, the next get_settings() call will
    reload settings from environment variables.
    """
    get_settings.cache_clear()


def is_json_logging() -> bool:
    """Check if JSON logging is enabled."""
    return get_settings().log_json
