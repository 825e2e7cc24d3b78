"""
Tests for the Allocation Engine.

Covers:
- Specific, shared and health cost allocation
- Self-inclusion in the Active denominator
- Zero Active animals
- Profit figures and the owner/caretaker split
- Earnings re-derivation for both payment models
- Purity: identical inputs, identical outputs, inputs untouched
"""

from datetime import date
from decimal import Decimal, localcontext
from uuid import uuid4

import pytest

from livestock_engines.allocation import ENGINE_CONTEXT, AllocationEngine
from livestock_kernel.domain.entities import (
    AnimalInfo,
    AnimalStatus,
    ExpenseInfo,
    HealthRecordInfo,
    PaymentModel,
    PaymentModelType,
)
from livestock_kernel.exceptions import ValidationError

BUSINESS_ID = uuid4()


def make_animal(price="30000", status=AnimalStatus.ACTIVE, **kwargs) -> AnimalInfo:
    if status == AnimalStatus.SOLD:
        kwargs.setdefault("sale_price", Decimal("40000"))
        kwargs.setdefault("sale_date", date(2024, 5, 15))
    return AnimalInfo(
        id=kwargs.pop("id", uuid4()),
        business_id=BUSINESS_ID,
        tag_number=kwargs.pop("tag_number", "G-001"),
        breed="Boer",
        gender="Female",
        purchase_price=Decimal(price),
        purchase_date=kwargs.pop("purchase_date", date(2024, 1, 10)),
        current_weight=Decimal("32"),
        status=status,
        **kwargs,
    )


def make_expense(amount, animal_id=None, category="Feed") -> ExpenseInfo:
    return ExpenseInfo(
        id=uuid4(),
        business_id=BUSINESS_ID,
        animal_id=animal_id,
        category=category,
        amount=Decimal(amount),
        expense_date=date(2024, 2, 1),
    )


def make_health(cost, animal_id) -> HealthRecordInfo:
    return HealthRecordInfo(
        id=uuid4(),
        business_id=BUSINESS_ID,
        animal_id=animal_id,
        record_type="Checkup",
        record_date=date(2024, 3, 1),
        cost=Decimal(cost),
    )


@pytest.fixture
def herd_snapshot():
    """Target plus three other Active animals; 2000 specific, 10000 shared."""
    target = make_animal()
    others = [make_animal("20000", tag_number=f"G-00{i}") for i in range(2, 5)]
    expenses = [
        make_expense("1500", target.id),
        make_expense("500", target.id, "Medicine"),
        make_expense("6000"),
        make_expense("4000", category="Transport"),
        make_expense("999", others[0].id),
    ]
    return target, [target, *others], expenses


class TestAllocate:
    """Cost allocation against a snapshot."""

    def setup_method(self):
        self.engine = AllocationEngine()

    def test_worked_example_costs(self, herd_snapshot):
        """2000 specific + 10000 shared / 4 Active = 4500."""
        target, animals, expenses = herd_snapshot

        breakdown = self.engine.allocate(target, expenses, animals, [])

        assert breakdown.specific == Decimal("2000")
        assert breakdown.shared_pool == Decimal("10000")
        assert breakdown.active_count == 4
        assert breakdown.shared_per_animal == Decimal("2500")
        assert breakdown.health == Decimal("0")
        assert breakdown.total == Decimal("4500")

    def test_other_animals_specific_expenses_ignored(self, herd_snapshot):
        target, animals, expenses = herd_snapshot
        breakdown = self.engine.allocate(target, expenses, animals, [])
        assert breakdown.specific == Decimal("2000")

    def test_health_costs_of_target_only(self, herd_snapshot):
        target, animals, expenses = herd_snapshot
        health = [make_health("700", target.id), make_health("300", animals[1].id)]

        breakdown = self.engine.allocate(target, expenses, animals, health)

        assert breakdown.health == Decimal("700")
        assert breakdown.total == Decimal("5200")

    def test_sold_animals_excluded_from_denominator(self, herd_snapshot):
        """Once the target is Sold, the shared pool divides over the other three."""
        target, animals, expenses = herd_snapshot
        sold_target = make_animal(status=AnimalStatus.SOLD, id=target.id)
        after = [sold_target, *animals[1:]]

        breakdown = self.engine.allocate(sold_target, expenses, after, [])

        assert breakdown.active_count == 3
        assert Decimal("3333.33") < breakdown.shared_per_animal < Decimal("3333.34")

    def test_zero_active_animals_gives_zero_shared(self):
        """No Active animals: shared share is 0, not a division error."""
        animal = make_animal(status=AnimalStatus.SOLD)
        expenses = [make_expense("500", animal.id), make_expense("8000")]

        breakdown = self.engine.allocate(animal, expenses, [animal], [])

        assert breakdown.active_count == 0
        assert breakdown.shared_per_animal == Decimal("0")
        assert breakdown.total == Decimal("500")

    def test_zero_active_logs_warning(self, captured_logs):
        animal = make_animal(status=AnimalStatus.DECEASED)

        self.engine.allocate(animal, [make_expense("100")], [animal], [])

        messages = [r["message"] for r in captured_logs()]
        assert "allocation_no_active_animals" in messages

    def test_no_rounding(self):
        """10000 / 3 stays unrounded."""
        animals = [make_animal(tag_number=f"G-{i}") for i in range(3)]
        breakdown = self.engine.allocate(animals[0], [make_expense("10000")], animals, [])
        with localcontext(ENGINE_CONTEXT):
            expected = Decimal("10000") / Decimal("3")
        assert breakdown.shared_per_animal == expected
        assert breakdown.shared_per_animal != Decimal("3333.33")

    def test_identical_inputs_identical_outputs(self, herd_snapshot):
        target, animals, expenses = herd_snapshot
        first = self.engine.allocate(target, expenses, animals, [])
        second = self.engine.allocate(target, tuple(expenses), tuple(animals), ())
        assert first == second

    def test_inputs_not_mutated(self, herd_snapshot):
        target, animals, expenses = herd_snapshot
        before = (list(animals), list(expenses))
        self.engine.allocate(target, expenses, animals, [])
        assert (animals, expenses) == before

    def test_emits_engine_trace(self, herd_snapshot, captured_logs):
        target, animals, expenses = herd_snapshot

        self.engine.allocate(target, expenses, animals, [])

        traces = [r for r in captured_logs() if r["message"] == "LIVESTOCK_ENGINE_TRACE"]
        assert traces
        assert traces[0]["engine_name"] == "allocation"
        assert len(traces[0]["input_fingerprint"]) == 16


class TestProfit:
    def setup_method(self):
        self.engine = AllocationEngine()

    def test_worked_example_profit(self, herd_snapshot):
        """Sale at 40000: gross 10000, net 5500."""
        target, animals, expenses = herd_snapshot
        breakdown = self.engine.allocate(target, expenses, animals, [])

        profit = self.engine.compute_profit(target, breakdown, Decimal("40000"))

        assert profit.gross_profit == Decimal("10000")
        assert profit.net_profit == Decimal("5500")
        assert profit.total_cost == Decimal("4500")
        assert profit.margin_percent == Decimal("13.75")

    def test_loss(self, herd_snapshot):
        target, animals, expenses = herd_snapshot
        breakdown = self.engine.allocate(target, expenses, animals, [])

        profit = self.engine.compute_profit(target, breakdown, Decimal("32000"))

        assert profit.net_profit == Decimal("-2500")

    @pytest.mark.parametrize("bad", [Decimal("-1"), Decimal("NaN"), None])
    def test_invalid_sale_price_rejected(self, herd_snapshot, bad):
        target, animals, expenses = herd_snapshot
        breakdown = self.engine.allocate(target, expenses, animals, [])
        with pytest.raises(ValidationError) as exc_info:
            self.engine.compute_profit(target, breakdown, bad)
        assert exc_info.value.field == "sale_price"


class TestSplit:
    def setup_method(self):
        self.engine = AllocationEngine()

    def test_percentage_split(self):
        """30% of 5500: caretaker 1650, owner 3850."""
        split = self.engine.split_profit(Decimal("5500"), PaymentModel("percentage", "30"))

        assert split.caretaker_share == Decimal("1650")
        assert split.owner_share == Decimal("3850")
        assert split.payment_type == PaymentModelType.PERCENTAGE
        assert split.accrues_at_sale

    def test_percentage_split_of_loss_is_negative(self):
        split = self.engine.split_profit(Decimal("-1000"), PaymentModel("percentage", "20"))
        assert split.caretaker_share == Decimal("-200")
        assert split.owner_share == Decimal("-800")

    def test_monthly_split_pays_nothing_at_sale(self):
        split = self.engine.split_profit(Decimal("5500"), PaymentModel("monthly", "2000"))

        assert split.caretaker_share == Decimal("0")
        assert split.owner_share == Decimal("5500")
        assert not split.accrues_at_sale

    def test_no_caretaker(self):
        split = self.engine.split_profit(Decimal("5500"), None)
        assert split.caretaker_share == Decimal("0")
        assert split.owner_share == Decimal("5500")
        assert split.payment_type is None


class TestEarningsForSale:
    def setup_method(self):
        self.engine = AllocationEngine()

    def test_percentage(self):
        animal = make_animal(status=AnimalStatus.SOLD)
        earnings = self.engine.earnings_for_sale(
            animal, Decimal("5500"), PaymentModel("percentage", "30")
        )
        assert earnings == Decimal("1650")

    def test_monthly_counts_whole_months(self):
        """2024-01-10 to 2024-05-15 is 126 days: 4 months."""
        animal = make_animal(status=AnimalStatus.SOLD)
        earnings = self.engine.earnings_for_sale(
            animal, Decimal("5500"), PaymentModel("monthly", "2000")
        )
        assert earnings == Decimal("8000")

    def test_monthly_minimum_one_month(self):
        animal = make_animal(
            status=AnimalStatus.SOLD,
            purchase_date=date(2024, 5, 1),
            sale_date=date(2024, 5, 10),
        )
        earnings = self.engine.earnings_for_sale(
            animal, Decimal("0"), PaymentModel("monthly", "2000")
        )
        assert earnings == Decimal("2000")

    def test_monthly_without_sale_date_is_zero(self):
        animal = make_animal()
        earnings = self.engine.earnings_for_sale(
            animal, Decimal("0"), PaymentModel("monthly", "2000")
        )
        assert earnings == Decimal("0")
