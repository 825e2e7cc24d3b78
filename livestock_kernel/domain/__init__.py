"""
Pure domain layer.

This module contains pure data transfer objects and domain logic
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.
"""

from livestock_kernel.domain.amounts import ZERO, to_decimal
from livestock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from livestock_kernel.domain.entities import (
    AccrualStatus,
    AnimalInfo,
    AnimalStatus,
    BusinessInfo,
    BusinessSnapshot,
    CaretakerInfo,
    ExpenseCategory,
    ExpenseInfo,
    Gender,
    HealthRecordInfo,
    HealthRecordType,
    HealthStatus,
    LedgerEntryInfo,
    PaymentModel,
    PaymentModelType,
    TransactionType,
    WeightRecordInfo,
    describe_sale,
    parse_enum,
)
from livestock_kernel.domain.period import (
    PeriodPreset,
    ReportPeriod,
    animal_in_period,
    slice_snapshot,
)

__all__ = [
    # Amounts
    "ZERO",
    "to_decimal",
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Enums
    "AccrualStatus",
    "AnimalStatus",
    "ExpenseCategory",
    "Gender",
    "HealthRecordType",
    "HealthStatus",
    "PaymentModelType",
    "TransactionType",
    "parse_enum",
    # DTOs
    "AnimalInfo",
    "BusinessInfo",
    "BusinessSnapshot",
    "CaretakerInfo",
    "ExpenseInfo",
    "HealthRecordInfo",
    "LedgerEntryInfo",
    "PaymentModel",
    "WeightRecordInfo",
    "describe_sale",
    # Periods
    "PeriodPreset",
    "ReportPeriod",
    "animal_in_period",
    "slice_snapshot",
]
