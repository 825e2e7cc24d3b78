"""
Runtime configuration schema.

The YAML file is parsed into these frozen dataclasses by
``livestock_config.loader``; nothing else in the system reads configuration
files or environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseConfig:
    """SQLAlchemy engine settings."""

    url: str = "sqlite:///livestock.db"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5
    pool_timeout: int = 30

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("database.url is required")
        if self.pool_size < 1:
            raise ValueError("database.pool_size must be at least 1")
        if self.max_overflow < 0:
            raise ValueError("database.max_overflow cannot be negative")
        if self.pool_timeout < 1:
            raise ValueError("database.pool_timeout must be at least 1 second")


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"

    def __post_init__(self) -> None:
        if self.level.upper() not in _LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {', '.join(_LOG_LEVELS)}, got {self.level!r}"
            )


@dataclass(frozen=True)
class SalesConfig:
    # Bounded wait for the per-business sale lock
    lock_timeout_seconds: float = 10.0

    def __post_init__(self) -> None:
        if self.lock_timeout_seconds <= 0:
            raise ValueError("sales.lock_timeout_seconds must be positive")


@dataclass(frozen=True)
class LivestockConfig:
    """
    Complete runtime configuration.

    ``reporting`` stays a plain mapping here; the reporting module turns it
    into its own ReportingConfig so config does not import modules.
    """

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    sales: SalesConfig = field(default_factory=SalesConfig)
    reporting: dict[str, Any] = field(default_factory=dict)
    source: str = "<defaults>"
