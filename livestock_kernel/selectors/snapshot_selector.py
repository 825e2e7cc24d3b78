"""
Module: livestock_kernel.selectors.snapshot_selector
Responsibility: Business-scoped reads.  ``fetch_by_business`` returns every
    entity collection of one business as a frozen BusinessSnapshot, the single
    input shape of the allocation engine and the report builders.
Architecture position: Kernel > Selectors.  May import from models/ and
    domain/ DTOs.

Invariants enforced:
    - Collections are ordered deterministically (by date, then id) so two
      reads of unchanged data produce equal snapshots.
    - Every row crosses into the domain through its model's to_dto().

Failure modes:
    - BusinessNotFoundError / AnimalNotFoundError / CaretakerNotFoundError
      when a requested id is absent.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from livestock_kernel.domain.entities import (
    AnimalInfo,
    BusinessInfo,
    BusinessSnapshot,
    CaretakerInfo,
    LedgerEntryInfo,
)
from livestock_kernel.exceptions import (
    AnimalNotFoundError,
    BusinessNotFoundError,
    CaretakerNotFoundError,
)
from livestock_kernel.logging_config import get_logger
from livestock_kernel.models.animal import Animal
from livestock_kernel.models.business import Business
from livestock_kernel.models.caretaker import Caretaker
from livestock_kernel.models.expense import Expense
from livestock_kernel.models.health_record import HealthRecord
from livestock_kernel.models.transaction import LedgerTransaction
from livestock_kernel.models.weight_record import WeightRecord
from livestock_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.snapshot")


class SnapshotSelector(BaseSelector[Animal]):
    """
    Selector for business snapshots and single-entity lookups.

    Guarantees:
        - Returns DTOs only.
        - Reads whatever the caller's session can see; when the caller holds
          a row lock on the business, the snapshot is consistent with it.
    """

    def fetch_by_business(self, business_id: UUID) -> BusinessSnapshot:
        business = self.get_business(business_id)

        animals = self.session.scalars(
            select(Animal)
            .where(Animal.business_id == business_id)
            .order_by(Animal.purchase_date, Animal.tag_number, Animal.id)
        ).all()
        caretakers = self.session.scalars(
            select(Caretaker)
            .where(Caretaker.business_id == business_id)
            .order_by(Caretaker.name, Caretaker.id)
        ).all()
        expenses = self.session.scalars(
            select(Expense)
            .where(Expense.business_id == business_id)
            .order_by(Expense.expense_date, Expense.id)
        ).all()
        health_records = self.session.scalars(
            select(HealthRecord)
            .where(HealthRecord.business_id == business_id)
            .order_by(HealthRecord.record_date, HealthRecord.id)
        ).all()
        weight_records = self.session.scalars(
            select(WeightRecord)
            .where(WeightRecord.business_id == business_id)
            .order_by(WeightRecord.record_date, WeightRecord.id)
        ).all()

        snapshot = BusinessSnapshot(
            business=business,
            animals=tuple(a.to_dto() for a in animals),
            caretakers=tuple(c.to_dto() for c in caretakers),
            expenses=tuple(e.to_dto() for e in expenses),
            health_records=tuple(h.to_dto() for h in health_records),
            weight_records=tuple(w.to_dto() for w in weight_records),
        )

        logger.debug(
            "snapshot_fetched",
            extra={
                "business_id": str(business_id),
                "animals": len(snapshot.animals),
                "caretakers": len(snapshot.caretakers),
                "expenses": len(snapshot.expenses),
                "health_records": len(snapshot.health_records),
                "weight_records": len(snapshot.weight_records),
            },
        )
        return snapshot

    def get_business(self, business_id: UUID) -> BusinessInfo:
        business = self.session.get(Business, business_id)
        if business is None:
            raise BusinessNotFoundError(str(business_id))
        return business.to_dto()

    def get_animal(self, animal_id: UUID) -> AnimalInfo:
        animal = self.session.get(Animal, animal_id)
        if animal is None:
            raise AnimalNotFoundError(str(animal_id))
        return animal.to_dto()

    def get_caretaker(self, caretaker_id: UUID) -> CaretakerInfo:
        caretaker = self.session.get(Caretaker, caretaker_id)
        if caretaker is None:
            raise CaretakerNotFoundError(str(caretaker_id))
        return caretaker.to_dto()

    def list_ledger_entries(
        self,
        business_id: UUID,
        start: date | None = None,
        end: date | None = None,
        animal_id: UUID | None = None,
    ) -> list[LedgerEntryInfo]:
        """Ledger entries for a business, oldest first, optionally bounded by date."""
        query = select(LedgerTransaction).where(LedgerTransaction.business_id == business_id)
        if start is not None:
            query = query.where(LedgerTransaction.transaction_date >= start)
        if end is not None:
            query = query.where(LedgerTransaction.transaction_date <= end)
        if animal_id is not None:
            query = query.where(LedgerTransaction.animal_id == animal_id)
        query = query.order_by(LedgerTransaction.transaction_date, LedgerTransaction.id)
        return [row.to_dto() for row in self.session.scalars(query).all()]
