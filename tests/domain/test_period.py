"""
Tests for report periods and the per-collection period filter.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from livestock_kernel.domain.entities import (
    AnimalInfo,
    BusinessInfo,
    BusinessSnapshot,
    ExpenseInfo,
    HealthRecordInfo,
    PaymentModel,
    WeightRecordInfo,
)
from livestock_kernel.domain.period import PeriodPreset, ReportPeriod, slice_snapshot
from livestock_kernel.exceptions import ValidationError

TODAY = date(2024, 5, 20)
BUSINESS_ID = uuid4()


class TestPresets:
    @pytest.mark.parametrize(
        ("kind", "start", "end", "label"),
        [
            ("week", date(2024, 5, 13), date(2024, 5, 20), "Last 7 Days"),
            ("month", date(2024, 5, 1), date(2024, 5, 31), "This Month"),
            ("quarter", date(2024, 4, 1), date(2024, 6, 30), "This Quarter"),
            ("year", date(2024, 1, 1), date(2024, 12, 31), "This Year"),
            ("custom", date(2024, 4, 20), date(2024, 5, 20), "Custom Range"),
        ],
    )
    def test_preset(self, kind, start, end, label):
        period = ReportPeriod.preset(kind, TODAY)
        assert (period.start, period.end, period.label) == (start, end, label)

    def test_february_leap_year(self):
        period = ReportPeriod.preset(PeriodPreset.MONTH, date(2024, 2, 10))
        assert period.end == date(2024, 2, 29)

    def test_custom_bounds(self):
        period = ReportPeriod.preset("custom", TODAY, start=date(2024, 1, 1), end=date(2024, 3, 1))
        assert (period.start, period.end) == (date(2024, 1, 1), date(2024, 3, 1))

    def test_custom_default_start_in_january(self):
        period = ReportPeriod.preset("custom", date(2024, 1, 31))
        assert period.start == date(2023, 12, 31)

    def test_unknown_preset(self):
        with pytest.raises(ValidationError):
            ReportPeriod.preset("fortnight", TODAY)

    def test_start_after_end(self):
        with pytest.raises(ValidationError):
            ReportPeriod(date(2024, 2, 1), date(2024, 1, 1))

    def test_contains_is_inclusive(self):
        period = ReportPeriod(date(2024, 3, 1), date(2024, 3, 31))
        assert period.contains(date(2024, 3, 1))
        assert period.contains(date(2024, 3, 31))
        assert not period.contains(date(2024, 4, 1))
        assert not period.contains(None)


def animal(purchase_date, sale_date=None) -> AnimalInfo:
    sold = sale_date is not None
    return AnimalInfo(
        id=uuid4(),
        business_id=BUSINESS_ID,
        tag_number=f"T-{purchase_date.isoformat()}",
        breed="Boer",
        gender="Female",
        purchase_price=Decimal("1000"),
        purchase_date=purchase_date,
        current_weight=Decimal("20"),
        status="Sold" if sold else "Active",
        sale_price=Decimal("1500") if sold else None,
        sale_date=sale_date,
    )


class TestSliceSnapshot:
    def setup_method(self):
        self.bought_before = animal(date(2023, 11, 1))
        self.bought_in = animal(date(2024, 3, 10))
        self.sold_in = animal(date(2023, 10, 1), sale_date=date(2024, 3, 20))
        self.sold_after = animal(date(2023, 10, 2), sale_date=date(2024, 4, 5))
        self.snapshot = BusinessSnapshot(
            business=BusinessInfo(BUSINESS_ID, "Farm", "INR", PaymentModel("percentage", "15")),
            animals=(self.bought_before, self.bought_in, self.sold_in, self.sold_after),
            caretakers=(),
            expenses=(
                # Expense of an out-of-period animal, dated in period
                ExpenseInfo(uuid4(), BUSINESS_ID, self.bought_before.id, "Feed", Decimal("10"), date(2024, 3, 5)),
                ExpenseInfo(uuid4(), BUSINESS_ID, self.bought_in.id, "Feed", Decimal("20"), date(2024, 2, 28)),
            ),
            health_records=(
                HealthRecordInfo(uuid4(), BUSINESS_ID, self.bought_before.id, "Checkup", date(2024, 3, 31), Decimal("5")),
            ),
            weight_records=(
                WeightRecordInfo(uuid4(), BUSINESS_ID, self.bought_in.id, Decimal("21"), date(2024, 4, 1)),
            ),
        )
        self.period = ReportPeriod(date(2024, 3, 1), date(2024, 3, 31))

    def test_animals_by_purchase_or_sale_date(self):
        sliced = slice_snapshot(self.snapshot, self.period)
        assert sliced.animals == (self.bought_in, self.sold_in)

    def test_records_filtered_by_own_date_only(self):
        """Membership of the record's animal plays no part."""
        sliced = slice_snapshot(self.snapshot, self.period)

        assert [e.amount for e in sliced.expenses] == [Decimal("10")]
        assert len(sliced.health_records) == 1
        assert sliced.weight_records == ()

    def test_business_and_caretakers_untouched(self):
        sliced = slice_snapshot(self.snapshot, self.period)
        assert sliced.business == self.snapshot.business
        assert sliced.caretakers == self.snapshot.caretakers

    def test_original_snapshot_unchanged(self):
        slice_snapshot(self.snapshot, self.period)
        assert len(self.snapshot.animals) == 4
