"""
Domain entities -- frozen DTOs for every persisted livestock record.

Responsibility:
    Immutable, self-validating value objects that engines, report builders
    and callers work with.  ORM rows are converted to these through one
    explicit ``to_dto()`` per model; nothing outside the kernel sees an ORM
    instance.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Imported by engines, services and
    modules.

Invariants enforced:
    - Amounts are Decimal, never float, and never negative.
    - An animal has sale_price and sale_date both set iff it is Sold.
    - A percentage payment model never exceeds 100.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from livestock_kernel.domain.amounts import ZERO, to_decimal
from livestock_kernel.exceptions import ValidationError


# =============================================================================
# Enums
# =============================================================================


class AnimalStatus(str, Enum):
    """Animal lifecycle status.  Active -> Sold is owned by the sale path."""

    ACTIVE = "Active"
    SOLD = "Sold"
    DECEASED = "Deceased"
    ARCHIVED = "Archived"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


class ExpenseCategory(str, Enum):
    FEED = "Feed"
    MEDICINE = "Medicine"
    TRANSPORT = "Transport"
    VETERINARY = "Veterinary"
    OTHER = "Other"


class HealthRecordType(str, Enum):
    VACCINATION = "Vaccination"
    ILLNESS = "Illness"
    INJURY = "Injury"
    DEWORMING = "Deworming"
    CHECKUP = "Checkup"
    REPRODUCTIVE = "Reproductive"


class HealthStatus(str, Enum):
    HEALTHY = "Healthy"
    UNDER_TREATMENT = "Under Treatment"
    RECOVERED = "Recovered"


class PaymentModelType(str, Enum):
    """How a caretaker is paid."""

    PERCENTAGE = "percentage"  # Share of net profit at sale time
    MONTHLY = "monthly"  # Flat amount per month under care


class TransactionType(str, Enum):
    PURCHASE = "Purchase"
    SALE = "Sale"
    EXPENSE = "Expense"


class AccrualStatus(str, Enum):
    """What happened to the caretaker share of a sale."""

    APPLIED = "applied"
    SKIPPED_MONTHLY = "skipped_monthly"
    NO_CARETAKER = "no_caretaker"


def parse_enum(enum_cls: type[Enum], value: object, field: str) -> Enum:
    """Coerce a raw value into ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(field, f"{value!r} is not one of: {allowed}") from exc


# =============================================================================
# Value objects
# =============================================================================


@dataclass(frozen=True)
class PaymentModel:
    """Rule governing a caretaker's earnings."""

    type: PaymentModelType
    amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "type", parse_enum(PaymentModelType, self.type, "payment_model.type")
        )
        amount = to_decimal(self.amount, "payment_model.amount")
        if self.type == PaymentModelType.PERCENTAGE and amount > Decimal("100"):
            raise ValidationError("payment_model.amount", "percentage cannot exceed 100")
        object.__setattr__(self, "amount", amount)

    @property
    def is_percentage(self) -> bool:
        return self.type == PaymentModelType.PERCENTAGE


@dataclass(frozen=True)
class BusinessInfo:
    """A livestock business.  ``default_payment_model`` only seeds caretakers."""

    id: UUID
    name: str
    currency: str
    default_payment_model: PaymentModel


@dataclass(frozen=True)
class AnimalInfo:
    """
    Immutable view of one animal.

    Guarantees:
        - purchase_price and current_weight are non-negative Decimals.
        - sale_price/sale_date are both present iff status is Sold.
    """

    id: UUID
    business_id: UUID
    tag_number: str
    breed: str
    gender: Gender
    purchase_price: Decimal
    purchase_date: date
    current_weight: Decimal
    status: AnimalStatus = AnimalStatus.ACTIVE
    caretaker_id: UUID | None = None
    sale_price: Decimal | None = None
    sale_date: date | None = None
    nickname: str | None = None
    date_of_birth: date | None = None
    color: str | None = None

    def __post_init__(self) -> None:
        entity = str(self.id)
        object.__setattr__(self, "status", parse_enum(AnimalStatus, self.status, "status"))
        object.__setattr__(self, "gender", parse_enum(Gender, self.gender, "gender"))
        object.__setattr__(
            self, "purchase_price", to_decimal(self.purchase_price, "purchase_price", entity_id=entity)
        )
        object.__setattr__(
            self, "current_weight", to_decimal(self.current_weight, "current_weight", entity_id=entity)
        )
        if (self.sale_price is None) != (self.sale_date is None):
            raise ValidationError("sale_price", "sale_price and sale_date must be set together", entity)
        if self.sale_price is not None:
            object.__setattr__(
                self, "sale_price", to_decimal(self.sale_price, "sale_price", entity_id=entity)
            )
        if (self.status == AnimalStatus.SOLD) != (self.sale_price is not None):
            raise ValidationError("status", "sale fields are present iff the animal is Sold", entity)

    @property
    def is_active(self) -> bool:
        return self.status == AnimalStatus.ACTIVE

    @property
    def is_sold(self) -> bool:
        return self.status == AnimalStatus.SOLD

    @property
    def display_name(self) -> str:
        return f"{self.tag_number} - {self.nickname or 'Unnamed'}"


@dataclass(frozen=True)
class ExpenseInfo:
    """An expense; ``animal_id`` None marks it shared across the business."""

    id: UUID
    business_id: UUID
    animal_id: UUID | None
    category: ExpenseCategory
    amount: Decimal
    expense_date: date
    description: str = ""
    caretaker_id: UUID | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", parse_enum(ExpenseCategory, self.category, "category"))
        object.__setattr__(self, "amount", to_decimal(self.amount, "amount", entity_id=str(self.id)))

    @property
    def is_shared(self) -> bool:
        return self.animal_id is None


@dataclass(frozen=True)
class HealthRecordInfo:
    """A health event for exactly one animal; its cost is always animal-specific."""

    id: UUID
    business_id: UUID
    animal_id: UUID
    record_type: HealthRecordType
    record_date: date
    cost: Decimal
    status: HealthStatus = HealthStatus.HEALTHY
    description: str = ""
    treatment: str | None = None
    veterinarian: str | None = None
    next_due_date: date | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "record_type", parse_enum(HealthRecordType, self.record_type, "record_type")
        )
        object.__setattr__(self, "status", parse_enum(HealthStatus, self.status, "status"))
        object.__setattr__(self, "cost", to_decimal(self.cost, "cost", entity_id=str(self.id)))


@dataclass(frozen=True)
class WeightRecordInfo:
    id: UUID
    business_id: UUID
    animal_id: UUID
    weight: Decimal
    record_date: date
    notes: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "weight", to_decimal(self.weight, "weight", entity_id=str(self.id)))


@dataclass(frozen=True)
class CaretakerInfo:
    """
    A caretaker and the payment model that governs them.

    ``payment_model`` is None only for legacy rows that predate per-caretaker
    models; see HerdService.migrate_payment_models.
    """

    id: UUID
    business_id: UUID
    name: str
    payment_model: PaymentModel | None
    total_earnings: Decimal = ZERO
    phone: str | None = None
    email: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "total_earnings",
            to_decimal(self.total_earnings, "total_earnings", allow_negative=True),
        )


@dataclass(frozen=True)
class LedgerEntryInfo:
    """
    One ledger transaction.

    For sales, profit figures are structured fields; ``description`` is a
    derived text rendering of them (see ``describe_sale``).
    """

    id: UUID
    business_id: UUID
    animal_id: UUID | None
    transaction_type: TransactionType
    amount: Decimal
    transaction_date: date
    description: str
    buyer: str | None = None
    vendor: str | None = None
    net_profit: Decimal | None = None
    gross_profit: Decimal | None = None
    total_cost: Decimal | None = None
    caretaker_id: UUID | None = None
    caretaker_share: Decimal | None = None
    accrual_status: AccrualStatus | None = None


def describe_sale(
    tag_number: str,
    net_profit: Decimal,
    total_cost: Decimal,
    currency: str,
) -> str:
    """Render the human-readable summary of a sale from its structured figures."""
    return (
        f"Sale of {tag_number} - Net Profit: {currency} {net_profit:,.2f} "
        f"(Expenses: {currency} {total_cost:,.2f})"
    )


# =============================================================================
# Snapshot
# =============================================================================


@dataclass(frozen=True)
class BusinessSnapshot:
    """
    Every entity collection of one business as read at one point in time.

    The deterministic input to the allocation engine and report builders.
    """

    business: BusinessInfo
    animals: tuple[AnimalInfo, ...]
    caretakers: tuple[CaretakerInfo, ...]
    expenses: tuple[ExpenseInfo, ...]
    health_records: tuple[HealthRecordInfo, ...]
    weight_records: tuple[WeightRecordInfo, ...] = ()

    def animal(self, animal_id: UUID) -> AnimalInfo | None:
        return next((a for a in self.animals if a.id == animal_id), None)

    def caretaker(self, caretaker_id: UUID | None) -> CaretakerInfo | None:
        if caretaker_id is None:
            return None
        return next((c for c in self.caretakers if c.id == caretaker_id), None)
