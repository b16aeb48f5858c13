"""Configuration for the analytics agent, loaded from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

# PostHog project key is operator supplied (MEILI_ANALYTICS_API_KEY); without one nothing is sent
DEFAULT_POSTHOG_HOST = "https://eu.i.posthog.com"

# Seconds between two stats reports
DEFAULT_TICK_INTERVAL = 60.0
DEFAULT_QUEUE_SIZE = 1000

_GIB = 1024 * 1024 * 1024
_MIB = 1024 * 1024

_TRUTHY = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


def is_analytics_globally_disabled() -> bool:
    """Check if analytics are disabled via the MEILI_NO_ANALYTICS environment variable.

    Returns:
        bool: True if analytics are globally disabled, False otherwise
    """
    return _env_bool("MEILI_NO_ANALYTICS")


@dataclass
class AnalyticsConfig:
    """Configuration for the analytics agent.

    Host options (``env``, size limits, snapshot schedule) are only reported in
    the initial trait snapshot; the agent never acts on them.
    """

    enabled: bool = True  # Default to enabled (opt-out)
    db_path: Path = Path("./data.ms")
    env: str = "development"
    max_index_size: int = 100 * _GIB
    max_udb_size: int = 100 * _GIB
    http_payload_size_limit: int = 100 * _MIB
    schedule_snapshot: bool = False
    tick_interval: float = DEFAULT_TICK_INTERVAL
    queue_size: int = DEFAULT_QUEUE_SIZE
    api_key: Optional[str] = None
    host: str = DEFAULT_POSTHOG_HOST

    def __post_init__(self) -> None:
        # asyncio.Queue treats a maxsize below 1 as unbounded
        if self.queue_size < 1:
            logging.getLogger("meili_analytics.telemetry").warning(
                f"Invalid analytics queue size {self.queue_size}, using {DEFAULT_QUEUE_SIZE}"
            )
            self.queue_size = DEFAULT_QUEUE_SIZE

    @property
    def identity_path(self) -> Path:
        """File holding the persisted anonymous identity."""
        return Path(self.db_path) / "user-id"

    @classmethod
    def from_env(cls, db_path: Optional[Path] = None) -> AnalyticsConfig:
        """Load config from environment variables."""
        return cls(
            enabled=not is_analytics_globally_disabled(),
            db_path=Path(db_path or os.environ.get("MEILI_DB_PATH", "./data.ms")),
            env=os.environ.get("MEILI_ENV", "development"),
            max_index_size=_env_int("MEILI_MAX_INDEX_SIZE", 100 * _GIB),
            max_udb_size=_env_int("MEILI_MAX_UDB_SIZE", 100 * _GIB),
            http_payload_size_limit=_env_int("MEILI_HTTP_PAYLOAD_SIZE_LIMIT", 100 * _MIB),
            schedule_snapshot=_env_bool("MEILI_SCHEDULE_SNAPSHOT"),
            tick_interval=_env_float("MEILI_ANALYTICS_TICK_INTERVAL", DEFAULT_TICK_INTERVAL),
            queue_size=_env_int("MEILI_ANALYTICS_QUEUE_SIZE", DEFAULT_QUEUE_SIZE),
            api_key=os.environ.get("MEILI_ANALYTICS_API_KEY") or None,
            host=os.environ.get("MEILI_ANALYTICS_HOST", DEFAULT_POSTHOG_HOST),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Host configuration values reported in the trait snapshot."""
        return {
            "Environment": self.env,
            "Max index size": self.max_index_size,
            "Max udb size": self.max_udb_size,
            "HTTP payload size limit": self.http_payload_size_limit,
            "Snapshot enabled": self.schedule_snapshot,
        }


_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def set_telemetry_log_level(level: Optional[int] = None) -> None:
    """Set the logging level for analytics loggers.

    By default, reads the MEILI_ANALYTICS_LOG_LEVEL environment variable
    (DEBUG, INFO, WARNING or ERROR) and falls back to WARNING, so the agent
    stays quiet unless explicitly asked otherwise.

    Args:
        level: The logging level to set (overrides environment variable if provided)
    """
    if level is None:
        env_level = os.environ.get("MEILI_ANALYTICS_LOG_LEVEL", "WARNING").upper()
        level = _LOG_LEVELS.get(env_level, logging.WARNING)

    for logger_name in ("meili_analytics.telemetry", "posthog"):
        logging.getLogger(logger_name).setLevel(level)
