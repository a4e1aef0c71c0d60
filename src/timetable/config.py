"""Service configuration loaded from environment variables."""

from datetime import date
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class TimetableConfig(BaseSettings):
    """Timetable service configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Admin gate for write endpoints
    admin_password: str = Field(
        default="changeme",
        description="Shared password expected in the X-Admin-Password header",
    )

    # HTTP listener
    host: str = Field(default="0.0.0.0", description="Interface to bind")
    port: int = Field(default=3000, description="Port to listen on")

    # Storage tier selection (decided once at startup)
    redis_url: str = Field(
        default="",
        description="Redis URL; when set, the Redis tier is used",
    )
    redis_connect_timeout: float = Field(
        default=5.0,
        description="Seconds to wait for the Redis connection at startup",
    )
    store_path: str = Field(
        default="",
        description="JSON file for the disk tier; used when REDIS_URL is unset",
    )

    # Snapshot staleness on read
    timetable_staleness: Literal["keep", "same_day"] = Field(
        default="keep",
        description=(
            "keep: serve the last snapshot indefinitely. "
            "same_day: hide snapshots captured on an earlier date"
        ),
    )

    # Ten-day rotation anchor (first "Day 1")
    cycle_start: date = Field(
        default=date(2026, 2, 23),
        description="Monday on which the Day 1..Day 10 rotation starts",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: TimetableConfig | None = None


def get_config() -> TimetableConfig:
    """Get the service configuration singleton.

    Returns:
        TimetableConfig: Service configuration instance
    """
    global _config
    if _config is None:
        _config = TimetableConfig()
    return _config
