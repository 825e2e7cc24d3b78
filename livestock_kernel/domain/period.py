"""
Report periods and the per-collection period filter.

A ReportPeriod is an inclusive calendar-date window.  ``slice_snapshot``
applies it to each snapshot collection independently:

    - an animal is in period if its purchase date is in the window, or it
      has a sale date that is in the window;
    - expenses, health records and weight records are in period by their
      own date only, whatever their animal's membership.

Caretakers and the business row are never filtered.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import Enum

from livestock_kernel.domain.entities import AnimalInfo, BusinessSnapshot
from livestock_kernel.exceptions import ValidationError


class PeriodPreset(str, Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ReportPeriod:
    """Inclusive date window ``[start, end]`` with a display label."""

    start: date
    end: date
    label: str = "Custom Range"

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValidationError(
                "period", f"start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    def contains(self, day: date | None) -> bool:
        return day is not None and self.start <= day <= self.end

    @classmethod
    def preset(
        cls,
        kind: PeriodPreset | str,
        today: date,
        start: date | None = None,
        end: date | None = None,
    ) -> ReportPeriod:
        """
        Build the window for a named preset relative to ``today``.

        ``start``/``end`` are only consulted for CUSTOM; a missing start
        defaults to one month before today and a missing end to today.
        """
        try:
            kind = PeriodPreset(kind)
        except ValueError as exc:
            raise ValidationError("period", f"unknown preset {kind!r}") from exc

        match kind:
            case PeriodPreset.WEEK:
                return cls(today - timedelta(days=7), today, "Last 7 Days")
            case PeriodPreset.MONTH:
                return cls(
                    today.replace(day=1),
                    today.replace(day=_last_day(today.year, today.month)),
                    "This Month",
                )
            case PeriodPreset.QUARTER:
                first_month = (today.month - 1) // 3 * 3 + 1
                last_month = first_month + 2
                return cls(
                    date(today.year, first_month, 1),
                    date(today.year, last_month, _last_day(today.year, last_month)),
                    "This Quarter",
                )
            case PeriodPreset.YEAR:
                return cls(date(today.year, 1, 1), date(today.year, 12, 31), "This Year")
            case PeriodPreset.CUSTOM:
                return cls(start or _month_before(today), end or today, "Custom Range")


def _last_day(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _month_before(day: date) -> date:
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    return date(year, month, min(day.day, _last_day(year, month)))


def animal_in_period(animal: AnimalInfo, period: ReportPeriod) -> bool:
    return period.contains(animal.purchase_date) or period.contains(animal.sale_date)


def slice_snapshot(snapshot: BusinessSnapshot, period: ReportPeriod) -> BusinessSnapshot:
    """Return a copy of ``snapshot`` with each dated collection filtered to ``period``."""
    return replace(
        snapshot,
        animals=tuple(a for a in snapshot.animals if animal_in_period(a, period)),
        expenses=tuple(e for e in snapshot.expenses if period.contains(e.expense_date)),
        health_records=tuple(
            h for h in snapshot.health_records if period.contains(h.record_date)
        ),
        weight_records=tuple(
            w for w in snapshot.weight_records if period.contains(w.record_date)
        ),
    )
