"""
Report Domain Models (``livestock_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for the four periodic reports: inventory,
financial, health and caretaker performance.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built by the
functions in ``statements.py`` and returned by ``ReportAggregator``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields are unrounded ``Decimal``; rounding to a display unit
  happens only in ``render_to_dict``.
* Breakdowns are tuples sorted by label so identical inputs render
  identically.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from livestock_kernel.domain.entities import (
    AnimalStatus,
    HealthRecordType,
    PaymentModel,
)


class ReportKind(str, Enum):
    """Kinds of periodic report."""

    INVENTORY = "inventory"
    FINANCIAL = "financial"
    HEALTH = "health"
    CARETAKER_PERFORMANCE = "caretaker_performance"


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    kind: ReportKind
    business_id: UUID
    business_name: str
    currency: str
    period_start: date
    period_end: date
    period_label: str


@dataclass(frozen=True)
class CountByLabel:
    label: str
    count: int


@dataclass(frozen=True)
class AmountByLabel:
    label: str
    amount: Decimal


# =========================================================================
# Inventory
# =========================================================================


@dataclass(frozen=True)
class InventoryLine:
    """One in-period animal."""

    animal_id: UUID
    tag_number: str
    display_name: str
    breed: str
    status: AnimalStatus
    purchase_date: date
    purchase_price: Decimal
    current_weight: Decimal
    caretaker_name: str | None


@dataclass(frozen=True)
class CaretakerAssignment:
    caretaker_id: UUID
    name: str
    assigned_count: int


@dataclass(frozen=True)
class InventoryReport:
    metadata: ReportMetadata
    total_animals: int
    active_animals: int
    sold_animals: int
    deceased_animals: int
    archived_animals: int
    total_value: Decimal
    average_weight: Decimal
    breed_breakdown: tuple[CountByLabel, ...]
    status_breakdown: tuple[CountByLabel, ...]
    caretaker_assignments: tuple[CaretakerAssignment, ...]
    lines: tuple[InventoryLine, ...]


# =========================================================================
# Financial
# =========================================================================


@dataclass(frozen=True)
class SaleLine:
    """
    One in-period sale.

    ``gross_profit`` is sale minus purchase.  ``net_profit`` also subtracts
    the allocated cost, and ``caretaker_share`` is the percentage share of
    that net profit (0 for a monthly caretaker or none).
    """

    animal_id: UUID
    tag_number: str
    sale_date: date
    purchase_price: Decimal
    sale_price: Decimal
    gross_profit: Decimal
    total_cost: Decimal
    net_profit: Decimal
    caretaker_share: Decimal


@dataclass(frozen=True)
class MonthlyTrendLine:
    """Revenue against expenses and health costs for one calendar month."""

    month: date  # first day of the month
    revenue: Decimal
    expenses: Decimal
    profit: Decimal


@dataclass(frozen=True)
class FinancialReport:
    """
    Period financial summary.

    Expense totals are flat sums of in-period records.  They are not divided
    across animals the way a single sale's cost is.  ``owner_earnings`` is
    the flat net profit less the caretakers' percentage shares of the
    in-period sales.  ``monthly_trend`` covers the trailing months up to the
    end of the period, skipping months with no activity.
    """

    metadata: ReportMetadata
    total_investment: Decimal
    total_revenue: Decimal
    care_expenses: Decimal
    health_expenses: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin_percent: Decimal
    roi_percent: Decimal
    caretaker_shares: Decimal
    owner_earnings: Decimal
    average_net_profit_per_sale: Decimal
    expenses_by_category: tuple[AmountByLabel, ...]
    sales: tuple[SaleLine, ...]
    monthly_trend: tuple[MonthlyTrendLine, ...]


# =========================================================================
# Health
# =========================================================================


@dataclass(frozen=True)
class UpcomingTreatment:
    record_id: UUID
    animal_id: UUID
    animal_label: str
    record_type: HealthRecordType
    description: str
    next_due_date: date
    days_until_due: int


@dataclass(frozen=True)
class HealthReport:
    metadata: ReportMetadata
    total_records: int
    total_health_costs: Decimal
    upcoming_count: int
    upcoming_treatments: tuple[UpcomingTreatment, ...]
    status_breakdown: tuple[CountByLabel, ...]
    treatment_type_breakdown: tuple[CountByLabel, ...]
    weight_records_logged: int


# =========================================================================
# Caretaker performance
# =========================================================================


@dataclass(frozen=True)
class CaretakerSaleLine:
    """Re-derived earnings for one sold animal."""

    animal_id: UUID
    tag_number: str
    sale_date: date | None
    sale_price: Decimal
    total_cost: Decimal
    net_profit: Decimal
    earnings: Decimal


@dataclass(frozen=True)
class CaretakerPerformanceLine:
    """
    One caretaker's figures for the period.

    ``recomputed_earnings`` is re-derived from in-period sales.
    ``accrued_earnings`` is the running total written at sale time and
    covers every sale ever made.  ``earnings_drift`` is accrued minus
    recomputed.
    """

    caretaker_id: UUID
    name: str
    payment_model: PaymentModel | None
    assigned_count: int
    active_count: int
    sold_count: int
    recomputed_earnings: Decimal
    accrued_earnings: Decimal
    earnings_drift: Decimal
    average_earnings_per_sale: Decimal
    sales: tuple[CaretakerSaleLine, ...]


@dataclass(frozen=True)
class CaretakerPerformanceReport:
    metadata: ReportMetadata
    business_payment_model: PaymentModel
    total_recomputed_earnings: Decimal
    total_accrued_earnings: Decimal
    caretakers: tuple[CaretakerPerformanceLine, ...]


Report = InventoryReport | FinancialReport | HealthReport | CaretakerPerformanceReport


@dataclass(frozen=True)
class ReportEnvelope:
    """
    A report stamped with the time it was generated.

    The timestamp lives here rather than on the report so that two builds
    over unchanged data compare and render equal whatever the clock says.
    """

    report: Report
    generated_at: str  # ISO format timestamp from the service clock
