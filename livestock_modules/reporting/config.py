"""
Reporting Configuration Schema.

Display and truncation options for the periodic reports.  Amounts inside
report DTOs are never rounded; ``display_precision`` applies only when a
report is rendered to plain data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Self

from livestock_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.
    """

    # Rounding precision for display
    display_precision: int = 2

    # Maximum upcoming treatments listed on the health report
    upcoming_treatment_limit: int = 10

    # Trailing months on the financial report trend
    trend_months: int = 12

    # Currency used when a business has none recorded
    default_currency: str = "INR"

    def __post_init__(self):
        if self.display_precision < 0:
            raise ValueError("display_precision cannot be negative")
        if self.upcoming_treatment_limit < 0:
            raise ValueError("upcoming_treatment_limit cannot be negative")
        if self.trend_months < 1:
            raise ValueError("trend_months must be at least 1")
        if len(self.default_currency) != 3:
            raise ValueError("default_currency must be a 3-letter ISO 4217 code")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
