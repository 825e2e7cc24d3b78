"""
Pure report transformation functions.

These functions turn period-sliced BusinessSnapshots into report DTOs.
ZERO I/O. ZERO side effects.  "Today" arrives as an argument; reports
carry no generation timestamp.

All monetary values are Decimal and stay unrounded until
``render_to_dict``.
"""

from __future__ import annotations

import dataclasses
from collections import Counter, defaultdict
from collections.abc import Iterable
from datetime import date
from decimal import Decimal, localcontext
from enum import Enum
from uuid import UUID

from livestock_engines.allocation import (
    ENGINE_CONTEXT,
    HUNDRED,
    AllocationEngine,
    CostBreakdown,
    ProfitFigures,
)
from livestock_kernel.db.types import round_money
from livestock_kernel.domain.amounts import ZERO
from livestock_kernel.domain.entities import (
    AnimalInfo,
    AnimalStatus,
    BusinessSnapshot,
    CaretakerInfo,
)
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
    ReportMetadata,
    SaleLine,
    UpcomingTreatment,
)

UNKNOWN_ANIMAL = "Unknown Animal"


def _counts(labels: Iterable[str]) -> tuple[CountByLabel, ...]:
    counter = Counter(labels)
    return tuple(CountByLabel(label, counter[label]) for label in sorted(counter))


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole == ZERO:
        return ZERO
    with localcontext(ENGINE_CONTEXT):
        return part / whole * HUNDRED


def _label(value: object) -> str:
    return value.value if isinstance(value, Enum) else str(value)


# =========================================================================
# Inventory
# =========================================================================


def build_inventory_report(
    metadata: ReportMetadata,
    sliced: BusinessSnapshot,
) -> InventoryReport:
    """
    Inventory of the in-period animals.

    Every caretaker is listed; ``assigned_count`` counts in-period animals
    only.
    """
    animals = sliced.animals
    status_counts = Counter(a.status for a in animals)

    with localcontext(ENGINE_CONTEXT):
        total_value = sum((a.purchase_price for a in animals), ZERO)
        total_weight = sum((a.current_weight for a in animals), ZERO)
        average_weight = total_weight / len(animals) if animals else ZERO

    caretaker_names = {c.id: c.name for c in sliced.caretakers}
    assigned = Counter(a.caretaker_id for a in animals if a.caretaker_id is not None)

    return InventoryReport(
        metadata=metadata,
        total_animals=len(animals),
        active_animals=status_counts[AnimalStatus.ACTIVE],
        sold_animals=status_counts[AnimalStatus.SOLD],
        deceased_animals=status_counts[AnimalStatus.DECEASED],
        archived_animals=status_counts[AnimalStatus.ARCHIVED],
        total_value=total_value,
        average_weight=average_weight,
        breed_breakdown=_counts(a.breed for a in animals),
        status_breakdown=_counts(_label(a.status) for a in animals),
        caretaker_assignments=tuple(
            CaretakerAssignment(c.id, c.name, assigned[c.id]) for c in sliced.caretakers
        ),
        lines=tuple(
            InventoryLine(
                animal_id=a.id,
                tag_number=a.tag_number,
                display_name=a.display_name,
                breed=a.breed,
                status=a.status,
                purchase_date=a.purchase_date,
                purchase_price=a.purchase_price,
                current_weight=a.current_weight,
                caretaker_name=caretaker_names.get(a.caretaker_id),
            )
            for a in animals
        ),
    )


# =========================================================================
# Financial
# =========================================================================


def _allocate_sale(
    animal: AnimalInfo,
    sliced: BusinessSnapshot,
    full: BusinessSnapshot,
    engine: AllocationEngine,
) -> tuple[CostBreakdown, ProfitFigures]:
    """
    Cost and profit of one sold animal as reports see it.

    Costs come from the in-period expenses and health records; the shared
    pool is divided by the Active animals of the full herd as it stands
    now, so a sold animal no longer counts itself.
    """
    breakdown = engine.allocate(animal, sliced.expenses, full.animals, sliced.health_records)
    return breakdown, engine.compute_profit(animal, breakdown, animal.sale_price)


def _shift_month(month: date, offset: int) -> date:
    years, index = divmod(month.month - 1 + offset, 12)
    return date(month.year + years, index + 1, 1)


def build_monthly_trend(
    full: BusinessSnapshot,
    last_day: date,
    months: int,
) -> tuple[MonthlyTrendLine, ...]:
    """
    Revenue, costs and profit per month for the ``months`` calendar months
    ending with the month of ``last_day``.

    Costs are expenses plus health record costs by their own dates; revenue
    is sale prices by sale date.  Months with neither are left out.
    """
    last = last_day.replace(day=1)
    window = [_shift_month(last, offset) for offset in range(1 - months, 1)]
    revenue: dict[date, Decimal] = defaultdict(lambda: ZERO)
    costs: dict[date, Decimal] = defaultdict(lambda: ZERO)

    with localcontext(ENGINE_CONTEXT):
        for animal in full.animals:
            if animal.is_sold and animal.sale_price is not None and animal.sale_date:
                revenue[animal.sale_date.replace(day=1)] += animal.sale_price
        for expense in full.expenses:
            costs[expense.expense_date.replace(day=1)] += expense.amount
        for record in full.health_records:
            costs[record.record_date.replace(day=1)] += record.cost

        return tuple(
            MonthlyTrendLine(month, revenue[month], costs[month], revenue[month] - costs[month])
            for month in window
            if revenue[month] or costs[month]
        )


def build_financial_report(
    metadata: ReportMetadata,
    sliced: BusinessSnapshot,
    full: BusinessSnapshot,
    engine: AllocationEngine | None = None,
    trend_months: int = 12,
) -> FinancialReport:
    """
    Period profit and loss from flat sums, with per-sale detail.

    net_profit = revenue - investment - (expenses + health costs)
    owner_earnings = net_profit - caretakers' percentage shares
    """
    engine = engine or AllocationEngine()
    sold = sorted(
        (a for a in sliced.animals if a.is_sold and a.sale_price is not None),
        key=lambda a: (a.sale_date, a.tag_number),
    )
    by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)

    sales = []
    for animal in sold:
        breakdown, profit = _allocate_sale(animal, sliced, full, engine)
        caretaker = full.caretaker(animal.caretaker_id)
        split = engine.split_profit(
            profit.net_profit, caretaker.payment_model if caretaker else None
        )
        sales.append(
            SaleLine(
                animal_id=animal.id,
                tag_number=animal.tag_number,
                sale_date=animal.sale_date,
                purchase_price=animal.purchase_price,
                sale_price=profit.sale_price,
                gross_profit=profit.gross_profit,
                total_cost=breakdown.total,
                net_profit=profit.net_profit,
                caretaker_share=split.caretaker_share,
            )
        )

    with localcontext(ENGINE_CONTEXT):
        investment = sum((a.purchase_price for a in sliced.animals), ZERO)
        revenue = sum((a.sale_price for a in sold), ZERO)
        care = sum((e.amount for e in sliced.expenses), ZERO)
        health = sum((h.cost for h in sliced.health_records), ZERO)
        total_expenses = care + health
        net = revenue - investment - total_expenses
        caretaker_shares = sum((s.caretaker_share for s in sales), ZERO)
        sale_net = sum((s.net_profit for s in sales), ZERO)
        average_net = sale_net / len(sales) if sales else ZERO
        for expense in sliced.expenses:
            by_category[_label(expense.category)] += expense.amount

    return FinancialReport(
        metadata=metadata,
        total_investment=investment,
        total_revenue=revenue,
        care_expenses=care,
        health_expenses=health,
        total_expenses=total_expenses,
        net_profit=net,
        profit_margin_percent=_percent(net, revenue),
        roi_percent=_percent(net, investment),
        caretaker_shares=caretaker_shares,
        owner_earnings=net - caretaker_shares,
        average_net_profit_per_sale=average_net,
        expenses_by_category=tuple(
            AmountByLabel(label, by_category[label]) for label in sorted(by_category)
        ),
        sales=tuple(sales),
        monthly_trend=build_monthly_trend(full, metadata.period_end, trend_months),
    )


# =========================================================================
# Health
# =========================================================================


def build_health_report(
    metadata: ReportMetadata,
    sliced: BusinessSnapshot,
    full: BusinessSnapshot,
    today: date,
    upcoming_limit: int,
) -> HealthReport:
    """
    Health activity in the period.

    Upcoming treatments are in-period records whose next due date is after
    ``today``, soonest first.  Animal labels resolve against the full herd
    so a record whose animal falls outside the period still gets a name.
    """
    records = sliced.health_records
    upcoming = sorted(
        (h for h in records if h.next_due_date is not None and h.next_due_date > today),
        key=lambda h: (h.next_due_date, str(h.id)),
    )

    def animal_label(animal_id: UUID) -> str:
        animal = full.animal(animal_id)
        return animal.display_name if animal is not None else UNKNOWN_ANIMAL

    with localcontext(ENGINE_CONTEXT):
        total_cost = sum((h.cost for h in records), ZERO)

    return HealthReport(
        metadata=metadata,
        total_records=len(records),
        total_health_costs=total_cost,
        upcoming_count=len(upcoming),
        upcoming_treatments=tuple(
            UpcomingTreatment(
                record_id=h.id,
                animal_id=h.animal_id,
                animal_label=animal_label(h.animal_id),
                record_type=h.record_type,
                description=h.description,
                next_due_date=h.next_due_date,
                days_until_due=(h.next_due_date - today).days,
            )
            for h in upcoming[:upcoming_limit]
        ),
        status_breakdown=_counts(_label(h.status) for h in records),
        treatment_type_breakdown=_counts(_label(h.record_type) for h in records),
        weight_records_logged=len(sliced.weight_records),
    )


# =========================================================================
# Caretaker performance
# =========================================================================


def recompute_caretaker_sales(
    caretaker: CaretakerInfo,
    sold_animals: Iterable[AnimalInfo],
    sliced: BusinessSnapshot,
    full: BusinessSnapshot,
    engine: AllocationEngine,
) -> tuple[CaretakerSaleLine, ...]:
    """
    Re-derive a caretaker's earnings per sold animal.

    Each animal is costed the way the financial report costs its sales.  A
    caretaker without a payment model earns 0.
    """
    lines = []
    for animal in sold_animals:
        breakdown, profit = _allocate_sale(animal, sliced, full, engine)
        if caretaker.payment_model is None:
            earnings = ZERO
        else:
            earnings = engine.earnings_for_sale(
                animal, profit.net_profit, caretaker.payment_model
            )
        lines.append(
            CaretakerSaleLine(
                animal_id=animal.id,
                tag_number=animal.tag_number,
                sale_date=animal.sale_date,
                sale_price=profit.sale_price,
                total_cost=breakdown.total,
                net_profit=profit.net_profit,
                earnings=earnings,
            )
        )
    return tuple(lines)


def build_caretaker_report(
    metadata: ReportMetadata,
    sliced: BusinessSnapshot,
    full: BusinessSnapshot,
    engine: AllocationEngine | None = None,
) -> CaretakerPerformanceReport:
    """Per-caretaker counts with recomputed and accrued earnings side by side."""
    engine = engine or AllocationEngine()
    performance = []

    for caretaker in sliced.caretakers:
        assigned = [a for a in sliced.animals if a.caretaker_id == caretaker.id]
        active = [a for a in assigned if a.is_active]
        sold = sorted(
            (a for a in assigned if a.is_sold and a.sale_price is not None),
            key=lambda a: (a.sale_date, a.tag_number),
        )
        sales = recompute_caretaker_sales(caretaker, sold, sliced, full, engine)

        with localcontext(ENGINE_CONTEXT):
            recomputed = sum((s.earnings for s in sales), ZERO)
            drift = caretaker.total_earnings - recomputed
            average = recomputed / len(sales) if sales else ZERO

        performance.append(
            CaretakerPerformanceLine(
                caretaker_id=caretaker.id,
                name=caretaker.name,
                payment_model=caretaker.payment_model,
                assigned_count=len(assigned),
                active_count=len(active),
                sold_count=len(sold),
                recomputed_earnings=recomputed,
                accrued_earnings=caretaker.total_earnings,
                earnings_drift=drift,
                average_earnings_per_sale=average,
                sales=sales,
            )
        )

    with localcontext(ENGINE_CONTEXT):
        total_recomputed = sum((p.recomputed_earnings for p in performance), ZERO)
        total_accrued = sum((p.accrued_earnings for p in performance), ZERO)

    return CaretakerPerformanceReport(
        metadata=metadata,
        business_payment_model=sliced.business.default_payment_model,
        total_recomputed_earnings=total_recomputed,
        total_accrued_earnings=total_accrued,
        caretakers=tuple(performance),
    )


# =========================================================================
# Serialization
# =========================================================================


def render_to_dict(
    obj: object,
    display_precision: int | None = None,
) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to plain data for JSON serialization.

    Handles:
    - Decimal -> str, rounded half-up to ``display_precision`` places when
      given, otherwise full precision
    - UUID -> str
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        if display_precision is not None and obj.is_finite():
            return str(round_money(obj, display_precision))
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item, display_precision) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v, display_precision) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name), display_precision)
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
