"""
Module: livestock_engines.pricing
Responsibility:
    Suggest a sale price for an animal from its purchase price, time on the
    farm, current weight and animal-specific expenses.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  "Today" is an explicit
    ``as_of`` argument; services obtain it from a Clock.

Formula (fixed constants):
    months_on_farm        = max(1, floor(days_since_purchase / 30))
    care_adjustment       = min(0.50, months_on_farm * 0.05)
    weight_factor         = +0.10 above 35 kg, -0.10 below 28 kg, else 0
    health_factor         = 0.05, applied unconditionally
    investment_recovery   = specific_expenses * 1.2
    price = round_half_up(purchase * (1 + care + weight + health) + recovery)

    The health factor does not look at health records.

Failure modes:
    - InvalidInputError on negative or NaN purchase price, weight or expense
      total.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext

from livestock_engines.allocation import ENGINE_CONTEXT, AllocationEngine
from livestock_engines.tracer import traced_engine
from livestock_kernel.domain.amounts import ZERO, to_decimal
from livestock_kernel.domain.entities import AnimalInfo, ExpenseInfo
from livestock_kernel.exceptions import InvalidInputError
from livestock_kernel.logging_config import get_logger

logger = get_logger("engines.pricing")

DAYS_PER_MONTH = 30
CARE_RATE_PER_MONTH = Decimal("0.05")
CARE_ADJUSTMENT_CAP = Decimal("0.5")
REFERENCE_WEIGHT = Decimal("35")
LOW_WEIGHT_CUTOFF = REFERENCE_WEIGHT * Decimal("0.8")
WEIGHT_ADJUSTMENT = Decimal("0.10")
HEALTH_FACTOR = Decimal("0.05")
INVESTMENT_RECOVERY_RATE = Decimal("1.2")


@dataclass(frozen=True)
class PriceSuggestion:
    """Every term of a suggested price, for display next to the figure."""

    months_on_farm: int
    care_duration_adjustment: Decimal
    weight_factor: Decimal
    health_factor: Decimal
    multiplier: Decimal
    base_price: Decimal
    investment_recovery: Decimal
    suggested_price: int


class PricingAdvisor:
    """
    Advisory sale price calculator.

    Contract:
        Never writes state.  Identical inputs give identical suggestions.
    """

    @traced_engine(
        "pricing",
        "1.0",
        fingerprint_fields=(
            "purchase_price",
            "purchase_date",
            "current_weight",
            "specific_expense_total",
            "as_of",
        ),
    )
    def explain(
        self,
        purchase_price: Decimal,
        purchase_date: date,
        current_weight: Decimal,
        specific_expense_total: Decimal,
        as_of: date,
    ) -> PriceSuggestion:
        """Compute the suggested price and every intermediate term."""
        price = to_decimal(purchase_price, "purchase_price", error_cls=InvalidInputError)
        weight = to_decimal(current_weight, "current_weight", error_cls=InvalidInputError)
        expenses = to_decimal(
            specific_expense_total, "specific_expense_total", error_cls=InvalidInputError
        )
        if purchase_date is None:
            raise InvalidInputError("purchase_date", "is required")
        if as_of is None:
            raise InvalidInputError("as_of", "is required")

        months = max(1, (as_of - purchase_date).days // DAYS_PER_MONTH)

        with localcontext(ENGINE_CONTEXT):
            care = min(CARE_ADJUSTMENT_CAP, CARE_RATE_PER_MONTH * months)
            if weight > REFERENCE_WEIGHT:
                weight_factor = WEIGHT_ADJUSTMENT
            elif weight < LOW_WEIGHT_CUTOFF:
                weight_factor = -WEIGHT_ADJUSTMENT
            else:
                weight_factor = ZERO
            multiplier = Decimal("1") + care + weight_factor + HEALTH_FACTOR
            base = price * multiplier
            recovery = expenses * INVESTMENT_RECOVERY_RATE
            suggested = int((base + recovery).to_integral_value(rounding=ROUND_HALF_UP))

        return PriceSuggestion(
            months_on_farm=months,
            care_duration_adjustment=care,
            weight_factor=weight_factor,
            health_factor=HEALTH_FACTOR,
            multiplier=multiplier,
            base_price=base,
            investment_recovery=recovery,
            suggested_price=suggested,
        )

    def suggest_price(
        self,
        animal: AnimalInfo,
        specific_expense_total: Decimal,
        as_of: date,
    ) -> int:
        """Suggested sale price in whole currency units."""
        return self.explain(
            purchase_price=animal.purchase_price,
            purchase_date=animal.purchase_date,
            current_weight=animal.current_weight,
            specific_expense_total=specific_expense_total,
            as_of=as_of,
        ).suggested_price

    def suggest_for_animal(
        self,
        animal: AnimalInfo,
        expenses: Iterable[ExpenseInfo],
        as_of: date,
    ) -> int:
        """Suggested price using the animal's specific expenses from ``expenses``."""
        total = AllocationEngine.sum_specific_expenses(animal.id, expenses)
        return self.suggest_price(animal, total, as_of)
