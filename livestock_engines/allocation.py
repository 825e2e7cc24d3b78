"""
Module: livestock_engines.allocation
Responsibility:
    Allocate specific, shared and health costs to one animal, derive its
    gross and net profit at a sale price, and split the net profit between
    owner and caretaker under the caretaker's payment model.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import livestock_kernel.domain, livestock_kernel.exceptions
    and livestock_kernel.logging_config.

Invariants enforced:
    - Shared pool is divided by the number of Active animals in the snapshot
      given.  The caller decides the snapshot point; an animal whose status
      has not yet been flipped counts itself.
    - Zero Active animals gives a shared share of exactly 0, never a
      division error.
    - No rounding to display units.  All arithmetic runs in ENGINE_CONTEXT
      (38 significant digits, ROUND_HALF_EVEN) so identical snapshots give
      bit-identical results.
    - Purity: no clock access, no I/O.

Failure modes:
    - ValidationError when a sale price is missing, NaN or negative.

Usage:
    from livestock_engines.allocation import AllocationEngine

    engine = AllocationEngine()
    breakdown = engine.allocate(animal, snapshot.expenses, snapshot.animals,
                                snapshot.health_records)
    profit = engine.compute_profit(animal, breakdown, sale_price)
    split = engine.split_profit(profit.net_profit, caretaker.payment_model)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Context, Decimal, localcontext
from uuid import UUID

from livestock_engines.tracer import traced_engine
from livestock_kernel.domain.amounts import ZERO, to_decimal
from livestock_kernel.domain.entities import (
    AnimalInfo,
    AnimalStatus,
    ExpenseInfo,
    HealthRecordInfo,
    PaymentModel,
    PaymentModelType,
)
from livestock_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")

ENGINE_CONTEXT = Context(prec=38, rounding=ROUND_HALF_EVEN)

HUNDRED = Decimal("100")
DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class CostBreakdown:
    """
    Costs allocated to one animal.

    Guarantees:
        - ``total == specific + shared_per_animal + health``.
        - ``shared_per_animal == 0`` when ``active_count == 0``.
    """

    animal_id: UUID
    specific: Decimal
    shared_pool: Decimal
    active_count: int
    shared_per_animal: Decimal
    health: Decimal
    total: Decimal


@dataclass(frozen=True)
class ProfitFigures:
    """Gross and net profit of one animal at a given sale price."""

    animal_id: UUID
    sale_price: Decimal
    purchase_price: Decimal
    total_cost: Decimal
    gross_profit: Decimal
    net_profit: Decimal

    @property
    def margin_percent(self) -> Decimal:
        """Net profit as a percentage of sale price (0 when sale price is 0)."""
        if self.sale_price == ZERO:
            return ZERO
        with localcontext(ENGINE_CONTEXT):
            return self.net_profit / self.sale_price * HUNDRED


@dataclass(frozen=True)
class ProfitSplit:
    """
    Division of a net profit between owner and caretaker.

    ``payment_type`` is None when no caretaker governs the animal.
    """

    net_profit: Decimal
    caretaker_share: Decimal
    owner_share: Decimal
    payment_type: PaymentModelType | None

    @property
    def accrues_at_sale(self) -> bool:
        return self.payment_type == PaymentModelType.PERCENTAGE


class AllocationEngine:
    """
    Per-animal cost allocation and profit split.

    Contract:
        Pure functions over DTO snapshots.  No I/O, no database access,
        no clock.
    Non-goals:
        - Does not choose the snapshot point; callers pass the snapshot
          they want allocated against.
        - Does not round; callers round at presentation.
    """

    @staticmethod
    def sum_specific_expenses(animal_id: UUID, expenses: Iterable[ExpenseInfo]) -> Decimal:
        """Sum of expense amounts tied to ``animal_id``."""
        with localcontext(ENGINE_CONTEXT):
            return sum((e.amount for e in expenses if e.animal_id == animal_id), ZERO)

    @traced_engine(
        "allocation",
        "1.0",
        fingerprint_fields=("animal", "expenses", "animals", "health_records"),
    )
    def allocate(
        self,
        animal: AnimalInfo,
        expenses: Sequence[ExpenseInfo],
        animals: Sequence[AnimalInfo],
        health_records: Sequence[HealthRecordInfo],
    ) -> CostBreakdown:
        """
        Allocate costs to ``animal`` against the given snapshot.

        Args:
            animal: The animal being costed.
            expenses: Every expense of the business (specific and shared).
            animals: Every animal of the business at the snapshot point.
            health_records: Every health record of the business.

        Returns:
            CostBreakdown with unrounded Decimal amounts.
        """
        with localcontext(ENGINE_CONTEXT):
            specific = self.sum_specific_expenses(animal.id, expenses)
            shared_pool = sum((e.amount for e in expenses if e.is_shared), ZERO)
            active_count = sum(1 for a in animals if a.status == AnimalStatus.ACTIVE)
            shared_per_animal = shared_pool / active_count if active_count else ZERO
            health = sum(
                (h.cost for h in health_records if h.animal_id == animal.id), ZERO
            )
            total = specific + shared_per_animal + health

        if active_count == 0 and shared_pool > ZERO:
            logger.warning(
                "allocation_no_active_animals",
                extra={"animal_id": str(animal.id), "shared_pool": str(shared_pool)},
            )

        return CostBreakdown(
            animal_id=animal.id,
            specific=specific,
            shared_pool=shared_pool,
            active_count=active_count,
            shared_per_animal=shared_per_animal,
            health=health,
            total=total,
        )

    @traced_engine("allocation.profit", "1.0", fingerprint_fields=("breakdown", "sale_price"))
    def compute_profit(
        self,
        animal: AnimalInfo,
        breakdown: CostBreakdown,
        sale_price: Decimal,
    ) -> ProfitFigures:
        """
        Gross profit is sale minus purchase; net profit also subtracts the
        allocated total cost.
        """
        price = to_decimal(sale_price, "sale_price", entity_id=str(animal.id))
        with localcontext(ENGINE_CONTEXT):
            gross = price - animal.purchase_price
            net = gross - breakdown.total
        return ProfitFigures(
            animal_id=animal.id,
            sale_price=price,
            purchase_price=animal.purchase_price,
            total_cost=breakdown.total,
            gross_profit=gross,
            net_profit=net,
        )

    @traced_engine("allocation.split", "1.0", fingerprint_fields=("net_profit", "payment_model"))
    def split_profit(
        self,
        net_profit: Decimal,
        payment_model: PaymentModel | None,
    ) -> ProfitSplit:
        """
        Split ``net_profit`` at sale time.

        Percentage model: caretaker gets ``net_profit * amount / 100`` (a
        loss yields a negative share).  Monthly model or no caretaker: the
        caretaker share is 0 and the owner keeps the whole net profit.
        """
        if payment_model is None or not payment_model.is_percentage:
            return ProfitSplit(
                net_profit=net_profit,
                caretaker_share=ZERO,
                owner_share=net_profit,
                payment_type=payment_model.type if payment_model else None,
            )
        with localcontext(ENGINE_CONTEXT):
            share = net_profit * payment_model.amount / HUNDRED
            owner = net_profit - share
        return ProfitSplit(
            net_profit=net_profit,
            caretaker_share=share,
            owner_share=owner,
            payment_type=payment_model.type,
        )

    def earnings_for_sale(
        self,
        animal: AnimalInfo,
        net_profit: Decimal,
        payment_model: PaymentModel,
    ) -> Decimal:
        """
        Caretaker earnings attributable to one sold animal, as reports
        re-derive them.

        Percentage: ``net_profit * amount / 100``.
        Monthly: ``amount * max(1, floor(days(sale - purchase) / 30))``;
        0 if the animal has no sale date.
        """
        if payment_model.is_percentage:
            return self.split_profit(net_profit, payment_model).caretaker_share
        if animal.sale_date is None:
            return ZERO
        days = (animal.sale_date - animal.purchase_date).days
        months = max(1, days // DAYS_PER_MONTH)
        with localcontext(ENGINE_CONTEXT):
            return payment_model.amount * months
