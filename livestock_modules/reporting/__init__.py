"""
Periodic Reporting Module (``livestock_modules.reporting``).

Responsibility
--------------
Read-only module producing inventory, financial, health and caretaker
performance reports over a date window.  Report figures are computed by
pure functions in ``statements.py``; ``ReportAggregator`` loads the data.

Invariants enforced
-------------------
* No writes.
* Period financial totals are flat sums; caretaker earnings are re-derived
  through the allocation engine.  The two are not reconciled.
"""

from livestock_modules.reporting.config import ReportingConfig
from livestock_modules.reporting.models import (
    AmountByLabel,
    CaretakerAssignment,
    CaretakerPerformanceLine,
    CaretakerPerformanceReport,
    CaretakerSaleLine,
    CountByLabel,
    FinancialReport,
    HealthReport,
    InventoryLine,
    InventoryReport,
    MonthlyTrendLine,
    Report,
    ReportEnvelope,
    ReportKind,
    ReportMetadata,
    SaleLine,
    UpcomingTreatment,
)
from livestock_modules.reporting.service import ReportAggregator
from livestock_modules.reporting.statements import render_to_dict

__all__ = [
    "AmountByLabel",
    "CaretakerAssignment",
    "CaretakerPerformanceLine",
    "CaretakerPerformanceReport",
    "CaretakerSaleLine",
    "CountByLabel",
    "FinancialReport",
    "HealthReport",
    "InventoryLine",
    "InventoryReport",
    "MonthlyTrendLine",
    "Report",
    "ReportAggregator",
    "ReportEnvelope",
    "ReportKind",
    "ReportMetadata",
    "ReportingConfig",
    "SaleLine",
    "UpcomingTreatment",
    "render_to_dict",
]
