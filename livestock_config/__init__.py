"""
livestock_config -- single public entrypoint for runtime configuration.

Responsibility:
    ``get_active_config()`` is the only way components obtain
    configuration.  No other module reads configuration files or
    environment variables.

Resolution order:
    1. explicit ``path`` argument;
    2. ``$LIVESTOCK_CONFIG``;
    3. the packaged ``defaults.yaml``.
    ``$DATABASE_URL``, when set, replaces ``database.url``.

Architecture position:
    Configuration sits above ``livestock_kernel`` and below
    ``livestock_services`` / ``livestock_modules``.  The kernel never
    imports from here.

Failure modes:
    - ``FileNotFoundError`` -- the resolved file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

from livestock_config.loader import load_config_file, parse_config
from livestock_config.schema import (
    DatabaseConfig,
    LivestockConfig,
    LoggingConfig,
    SalesConfig,
)
from livestock_kernel.logging_config import get_logger

logger = get_logger("config")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

CONFIG_ENV_VAR = "LIVESTOCK_CONFIG"
DATABASE_URL_ENV_VAR = "DATABASE_URL"


def get_active_config(path: Path | str | None = None) -> LivestockConfig:
    """The single public configuration entrypoint."""
    resolved = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULTS_PATH)
    config = load_config_file(resolved)

    database_url = os.environ.get(DATABASE_URL_ENV_VAR)
    if database_url:
        config = replace(config, database=replace(config.database, url=database_url))

    logger.info(
        "config_loaded",
        extra={
            "source": config.source,
            "database_url_from_env": bool(database_url),
            "log_level": config.logging.level,
            "lock_timeout_seconds": config.sales.lock_timeout_seconds,
        },
    )
    return config


__all__ = [
    "DEFAULTS_PATH",
    "DatabaseConfig",
    "LivestockConfig",
    "LoggingConfig",
    "SalesConfig",
    "get_active_config",
    "parse_config",
]
