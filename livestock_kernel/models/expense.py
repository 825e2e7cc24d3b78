"""
Module: livestock_kernel.models.expense
Responsibility: ORM persistence for care expenses, either tied to one animal
    or shared across the business (animal_id NULL).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - amount >= 0.
    - animal_id is a lookup reference without a foreign key, so expense
      history survives deletion of the animal it describes.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from livestock_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from livestock_kernel.domain.entities import ExpenseInfo


class Expense(TrackedBase):
    __tablename__ = "expenses"

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_expense_amount"),
        CheckConstraint(
            "category IN ('Feed', 'Medicine', 'Transport', 'Veterinary', 'Other')",
            name="ck_expense_category",
        ),
        Index("idx_expense_business_date", "business_id", "expense_date"),
        Index("idx_expense_animal", "animal_id"),
    )

    business_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("businesses.id"),
        nullable=False,
    )

    # NULL = shared across all active animals
    animal_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    category: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    # Who incurred it, if recorded
    caretaker_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def to_dto(self) -> ExpenseInfo:
        """Convert ORM model to frozen domain DTO."""
        from livestock_kernel.domain.entities import ExpenseInfo

        return ExpenseInfo(
            id=self.id,
            business_id=self.business_id,
            animal_id=self.animal_id,
            category=self.category,
            amount=self.amount,
            expense_date=self.expense_date,
            description=self.description,
            caretaker_id=self.caretaker_id,
        )

    def __repr__(self) -> str:
        scope = "shared" if self.animal_id is None else str(self.animal_id)
        return f"<Expense {self.category} {self.amount} ({scope})>"
