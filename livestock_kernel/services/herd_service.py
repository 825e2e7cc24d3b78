"""
HerdService -- write commands for herd records.

Responsibility:
    Creates businesses, animals, caretakers, expenses, health and weight
    records, manual ledger entries, and performs the simple status and
    assignment changes that sit outside the sale path.

Architecture position:
    Kernel > Services.  Flush-only; the caller owns commit/rollback.

Invariants enforced:
    - Every record is created inside one business; cross-business references
      (an animal's caretaker, an expense's animal) are rejected.
    - current_weight is written through explicitly by record_weight() when
      the new record is the latest by date.  No other code path updates it.
    - A caretaker created without a payment model receives an explicit copy
      of the business default; nothing reads the business default later.
    - Active -> Sold is not available here; see SaleCoordinator.

Failure modes:
    - ValidationError on bad input (negative amounts, unknown enum values,
      cross-business references).
    - InvalidStateError when retiring or assigning a non-Active animal.
    - *NotFoundError when a referenced id is absent.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from livestock_kernel.domain.amounts import to_decimal
from livestock_kernel.domain.entities import (
    AnimalInfo,
    AnimalStatus,
    BusinessInfo,
    CaretakerInfo,
    ExpenseCategory,
    ExpenseInfo,
    Gender,
    HealthRecordInfo,
    HealthRecordType,
    HealthStatus,
    LedgerEntryInfo,
    PaymentModel,
    TransactionType,
    WeightRecordInfo,
    parse_enum,
)
from livestock_kernel.exceptions import (
    AnimalNotFoundError,
    BusinessNotFoundError,
    CaretakerNotFoundError,
    InvalidStateError,
    ValidationError,
)
from livestock_kernel.logging_config import get_logger
from livestock_kernel.models.animal import Animal
from livestock_kernel.models.business import Business
from livestock_kernel.models.caretaker import Caretaker
from livestock_kernel.models.expense import Expense
from livestock_kernel.models.health_record import HealthRecord
from livestock_kernel.models.transaction import LedgerTransaction
from livestock_kernel.models.weight_record import WeightRecord
from livestock_kernel.services.base import BaseService

logger = get_logger("services.herd")

_RETIRED_STATUSES = frozenset({AnimalStatus.DECEASED, AnimalStatus.ARCHIVED})


class HerdService(BaseService[Animal]):
    """
    Service for herd record keeping.

    All public methods return frozen DTOs, not ORM entities.
    """

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _get_business(self, business_id: UUID) -> Business:
        business = self.session.get(Business, business_id)
        if business is None:
            raise BusinessNotFoundError(str(business_id))
        return business

    def _get_animal(self, animal_id: UUID, business_id: UUID | None = None) -> Animal:
        animal = self.session.get(Animal, animal_id)
        if animal is None:
            raise AnimalNotFoundError(str(animal_id))
        if business_id is not None and animal.business_id != business_id:
            raise ValidationError(
                "animal_id", f"belongs to another business ({animal.business_id})", str(animal_id)
            )
        return animal

    def _get_caretaker(self, caretaker_id: UUID, business_id: UUID | None = None) -> Caretaker:
        caretaker = self.session.get(Caretaker, caretaker_id)
        if caretaker is None:
            raise CaretakerNotFoundError(str(caretaker_id))
        if business_id is not None and caretaker.business_id != business_id:
            raise ValidationError(
                "caretaker_id",
                f"belongs to another business ({caretaker.business_id})",
                str(caretaker_id),
            )
        return caretaker

    # -------------------------------------------------------------------------
    # Businesses and caretakers
    # -------------------------------------------------------------------------

    def create_business(
        self,
        name: str,
        actor_id: UUID,
        currency: str = "INR",
        default_payment_model: PaymentModel | None = None,
    ) -> BusinessInfo:
        if not name or not name.strip():
            raise ValidationError("name", "is required")
        if len(currency) != 3:
            raise ValidationError("currency", "must be a 3-letter ISO 4217 code")
        model = default_payment_model or PaymentModel(type="percentage", amount=Decimal("15"))

        business = Business(
            name=name.strip(),
            currency=currency.upper(),
            payment_model_type=model.type.value,
            payment_model_amount=model.amount,
            created_by_id=actor_id,
        )
        self.session.add(business)
        self.session.flush()

        logger.info(
            "business_created",
            extra={"business_id": str(business.id), "currency": business.currency},
        )
        return business.to_dto()

    def add_caretaker(
        self,
        business_id: UUID,
        name: str,
        actor_id: UUID,
        payment_model: PaymentModel | None = None,
        phone: str | None = None,
        email: str | None = None,
    ) -> CaretakerInfo:
        """
        Create a caretaker.

        When ``payment_model`` is omitted the business default is copied onto
        the caretaker row at creation.  Later changes to the business default
        do not affect existing caretakers.
        """
        business = self._get_business(business_id)
        if not name or not name.strip():
            raise ValidationError("name", "is required")

        if payment_model is None:
            payment_model = business.to_dto().default_payment_model
            copied = True
        else:
            copied = False

        caretaker = Caretaker(
            business_id=business_id,
            name=name.strip(),
            phone=phone,
            email=email,
            payment_type=payment_model.type.value,
            payment_amount=payment_model.amount,
            total_earnings=Decimal("0"),
            created_by_id=actor_id,
        )
        self.session.add(caretaker)
        self.session.flush()

        logger.info(
            "caretaker_created",
            extra={
                "business_id": str(business_id),
                "caretaker_id": str(caretaker.id),
                "payment_type": caretaker.payment_type,
                "copied_business_default": copied,
            },
        )
        return caretaker.to_dto()

    def migrate_payment_models(self, business_id: UUID, actor_id: UUID) -> int:
        """
        Copy the business default payment model onto legacy caretakers that
        have none.

        Returns:
            Number of caretakers migrated.
        """
        business = self._get_business(business_id)
        legacy = self.session.scalars(
            select(Caretaker).where(
                Caretaker.business_id == business_id,
                Caretaker.payment_type.is_(None),
            )
        ).all()

        for caretaker in legacy:
            caretaker.payment_type = business.payment_model_type
            caretaker.payment_amount = business.payment_model_amount
            caretaker.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "payment_models_migrated",
            extra={
                "business_id": str(business_id),
                "migrated": len(legacy),
                "payment_type": business.payment_model_type,
            },
        )
        return len(legacy)

    # -------------------------------------------------------------------------
    # Animals
    # -------------------------------------------------------------------------

    def add_animal(
        self,
        business_id: UUID,
        tag_number: str,
        breed: str,
        gender: Gender | str,
        purchase_price: Decimal | int | str,
        purchase_date: date,
        current_weight: Decimal | int | str,
        actor_id: UUID,
        caretaker_id: UUID | None = None,
        nickname: str | None = None,
        date_of_birth: date | None = None,
        color: str | None = None,
    ) -> AnimalInfo:
        self._get_business(business_id)
        if not tag_number or not tag_number.strip():
            raise ValidationError("tag_number", "is required")
        if purchase_date is None:
            raise ValidationError("purchase_date", "is required")
        gender = parse_enum(Gender, gender, "gender")
        price = to_decimal(purchase_price, "purchase_price")
        weight = to_decimal(current_weight, "current_weight")
        if caretaker_id is not None:
            self._get_caretaker(caretaker_id, business_id)

        duplicate = self.session.scalar(
            select(func.count(Animal.id)).where(
                Animal.business_id == business_id,
                Animal.tag_number == tag_number.strip(),
            )
        )
        if duplicate:
            raise ValidationError("tag_number", f"{tag_number!r} already exists in this business")

        animal = Animal(
            business_id=business_id,
            tag_number=tag_number.strip(),
            breed=breed,
            gender=gender.value,
            purchase_price=price,
            purchase_date=purchase_date,
            current_weight=weight,
            status=AnimalStatus.ACTIVE.value,
            caretaker_id=caretaker_id,
            nickname=nickname,
            date_of_birth=date_of_birth,
            color=color,
            created_by_id=actor_id,
        )
        self.session.add(animal)
        self.session.flush()

        logger.info(
            "animal_added",
            extra={
                "business_id": str(business_id),
                "animal_id": str(animal.id),
                "tag_number": animal.tag_number,
                "purchase_price": str(price),
            },
        )
        return animal.to_dto()

    def assign_caretaker(
        self,
        animal_id: UUID,
        caretaker_id: UUID | None,
        actor_id: UUID,
    ) -> AnimalInfo:
        """Assign (or with None, unassign) the caretaker of an Active animal."""
        animal = self._get_animal(animal_id)
        if animal.status != AnimalStatus.ACTIVE.value:
            raise InvalidStateError(str(animal_id), animal.status, "assign_caretaker")
        if caretaker_id is not None:
            self._get_caretaker(caretaker_id, animal.business_id)

        previous = animal.caretaker_id
        animal.caretaker_id = caretaker_id
        animal.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "caretaker_assigned",
            extra={
                "animal_id": str(animal_id),
                "caretaker_id": str(caretaker_id) if caretaker_id else None,
                "previous_caretaker_id": str(previous) if previous else None,
            },
        )
        return animal.to_dto()

    def retire_animal(
        self,
        animal_id: UUID,
        status: AnimalStatus | str,
        actor_id: UUID,
    ) -> AnimalInfo:
        """Move an Active animal to Deceased or Archived."""
        status = parse_enum(AnimalStatus, status, "status")
        if status not in _RETIRED_STATUSES:
            raise ValidationError("status", f"retire_animal cannot set {status.value}")

        animal = self._get_animal(animal_id)
        if animal.status != AnimalStatus.ACTIVE.value:
            raise InvalidStateError(str(animal_id), animal.status, "retire_animal")

        animal.status = status.value
        animal.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "animal_retired",
            extra={"animal_id": str(animal_id), "status": status.value},
        )
        return animal.to_dto()

    # -------------------------------------------------------------------------
    # Costs and measurements
    # -------------------------------------------------------------------------

    def record_expense(
        self,
        business_id: UUID,
        category: ExpenseCategory | str,
        amount: Decimal | int | str,
        expense_date: date | None,
        actor_id: UUID,
        animal_id: UUID | None = None,
        description: str = "",
        caretaker_id: UUID | None = None,
    ) -> ExpenseInfo:
        """Record an expense; without ``animal_id`` it is shared across the business."""
        self._get_business(business_id)
        category = parse_enum(ExpenseCategory, category, "category")
        value = to_decimal(amount, "amount")
        expense_date = expense_date or self._clock.today()
        if animal_id is not None:
            self._get_animal(animal_id, business_id)
        if caretaker_id is not None:
            self._get_caretaker(caretaker_id, business_id)

        expense = Expense(
            business_id=business_id,
            animal_id=animal_id,
            category=category.value,
            amount=value,
            expense_date=expense_date,
            description=description,
            caretaker_id=caretaker_id,
            created_by_id=actor_id,
        )
        self.session.add(expense)
        self.session.flush()

        logger.info(
            "expense_recorded",
            extra={
                "business_id": str(business_id),
                "expense_id": str(expense.id),
                "animal_id": str(animal_id) if animal_id else None,
                "category": category.value,
                "amount": str(value),
                "shared": animal_id is None,
            },
        )
        return expense.to_dto()

    def record_health_record(
        self,
        animal_id: UUID,
        record_type: HealthRecordType | str,
        record_date: date | None,
        actor_id: UUID,
        cost: Decimal | int | str = 0,
        status: HealthStatus | str = HealthStatus.HEALTHY,
        description: str = "",
        treatment: str | None = None,
        veterinarian: str | None = None,
        next_due_date: date | None = None,
        notes: str | None = None,
    ) -> HealthRecordInfo:
        animal = self._get_animal(animal_id)
        record_type = parse_enum(HealthRecordType, record_type, "record_type")
        status = parse_enum(HealthStatus, status, "status")
        value = to_decimal(cost, "cost")
        record_date = record_date or self._clock.today()

        record = HealthRecord(
            business_id=animal.business_id,
            animal_id=animal_id,
            record_type=record_type.value,
            record_date=record_date,
            cost=value,
            status=status.value,
            description=description,
            treatment=treatment,
            veterinarian=veterinarian,
            next_due_date=next_due_date,
            notes=notes,
            created_by_id=actor_id,
        )
        self.session.add(record)
        self.session.flush()

        logger.info(
            "health_record_added",
            extra={
                "animal_id": str(animal_id),
                "record_id": str(record.id),
                "record_type": record_type.value,
                "cost": str(value),
            },
        )
        return record.to_dto()

    def record_weight(
        self,
        animal_id: UUID,
        weight: Decimal | int | str,
        record_date: date | None,
        actor_id: UUID,
        notes: str | None = None,
    ) -> WeightRecordInfo:
        """
        Record a weight measurement.

        If no existing record for the animal is dated after ``record_date``,
        the animal's current_weight is updated to ``weight`` in the same flush.
        A back-dated measurement leaves current_weight alone.
        """
        animal = self._get_animal(animal_id)
        value = to_decimal(weight, "weight")
        if value == 0:
            raise ValidationError("weight", "must be greater than zero")
        record_date = record_date or self._clock.today()

        latest = self.session.scalar(
            select(func.max(WeightRecord.record_date)).where(WeightRecord.animal_id == animal_id)
        )

        record = WeightRecord(
            business_id=animal.business_id,
            animal_id=animal_id,
            weight=value,
            record_date=record_date,
            notes=notes,
            created_by_id=actor_id,
        )
        self.session.add(record)

        is_latest = latest is None or record_date >= latest
        if is_latest:
            animal.current_weight = value
            animal.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "weight_recorded",
            extra={
                "animal_id": str(animal_id),
                "weight": str(value),
                "current_weight_updated": is_latest,
            },
        )
        return record.to_dto()

    def record_ledger_entry(
        self,
        business_id: UUID,
        transaction_type: TransactionType | str,
        amount: Decimal | int | str,
        transaction_date: date,
        actor_id: UUID,
        description: str = "",
        animal_id: UUID | None = None,
        vendor: str | None = None,
    ) -> LedgerEntryInfo:
        """
        Record a manual Purchase or Expense ledger entry.

        Sale entries are written only by the sale coordinator.
        """
        self._get_business(business_id)
        transaction_type = parse_enum(TransactionType, transaction_type, "transaction_type")
        if transaction_type == TransactionType.SALE:
            raise ValidationError(
                "transaction_type", "sales are recorded through SaleCoordinator.sell"
            )
        value = to_decimal(amount, "amount")
        if animal_id is not None:
            self._get_animal(animal_id, business_id)

        entry = LedgerTransaction(
            business_id=business_id,
            animal_id=animal_id,
            transaction_type=transaction_type.value,
            amount=value,
            transaction_date=transaction_date,
            description=description,
            vendor=vendor,
            created_by_id=actor_id,
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "ledger_entry_recorded",
            extra={
                "business_id": str(business_id),
                "transaction_type": transaction_type.value,
                "amount": str(value),
            },
        )
        return entry.to_dto()
