"""Planner configuration loaded from environment variables."""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class PlannerConfig(BaseSettings):
    """Planner configuration loaded from environment variables.

    Every field can be set with a PLANNER_ prefixed variable
    (e.g. PLANNER_STORE_PATH) or from a .env file in the working directory.
    """

    # Storage
    store_path: str = Field(
        default="planner-data.json",
        description="JSON file backing the planner's key-value store",
    )

    # Projection
    horizon_weeks: int = Field(
        default=26,
        ge=1,
        le=104,
        description="Weeks ahead to project timetable occurrences",
    )
    remap_horizon_weeks: int = Field(
        default=52,
        ge=1,
        le=104,
        description="Weeks ahead to consider when relocating saved lesson records",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format",
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "PLANNER_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: Optional[PlannerConfig] = None


def get_config() -> PlannerConfig:
    """Get the planner configuration singleton.

    Returns:
        PlannerConfig: Planner configuration instance
    """
    global _config
    if _config is None:
        _config = PlannerConfig()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config
    _config = None
