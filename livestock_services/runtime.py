"""
Runtime bootstrap.

Turns a LivestockConfig into a configured process: structured logging on
the ``livestock`` logger hierarchy and a registered SQLAlchemy engine.
Hosts call ``init_runtime()`` once at startup, then open sessions through
``livestock_kernel.db`` and build services with the factories below so the
configured lock timeout and report options apply.
"""

from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from livestock_config import LivestockConfig, get_active_config
from livestock_kernel.db.engine import create_tables, init_engine_from_url
from livestock_kernel.domain.clock import Clock
from livestock_kernel.logging_config import configure_logging, get_logger
from livestock_modules.reporting import ReportAggregator, ReportingConfig
from livestock_services.sale_coordinator import SaleCoordinator

logger = get_logger("services.runtime")


def init_runtime(
    config: LivestockConfig | None = None,
    create_schema: bool = False,
) -> Engine:
    """
    Configure logging and the database engine from ``config``.

    Args:
        config: Configuration to apply; loaded via get_active_config() when
            omitted.
        create_schema: Create missing tables after connecting.

    Returns:
        The registered SQLAlchemy Engine.
    """
    config = config or get_active_config()
    configure_logging(level=config.logging.level.upper())

    db = config.database
    engine = init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
    )
    if create_schema:
        create_tables(engine)

    logger.info(
        "runtime_initialized",
        extra={"config_source": config.source, "dialect": engine.dialect.name},
    )
    return engine


def build_sale_coordinator(
    session: Session,
    config: LivestockConfig,
    clock: Clock | None = None,
) -> SaleCoordinator:
    """SaleCoordinator with the configured lock timeout."""
    return SaleCoordinator(
        session,
        clock=clock,
        lock_timeout_seconds=config.sales.lock_timeout_seconds,
    )


def build_report_aggregator(
    session: Session,
    config: LivestockConfig,
    clock: Clock | None = None,
) -> ReportAggregator:
    """ReportAggregator with the configured ``reporting`` options."""
    return ReportAggregator(
        session,
        clock=clock,
        config=ReportingConfig.from_dict(dict(config.reporting)),
    )
