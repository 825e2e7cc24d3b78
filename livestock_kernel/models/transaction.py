"""
Module: livestock_kernel.models.transaction
Responsibility: ORM persistence for ledger transactions (purchases, sales,
    expenses) with structured profit fields on sales.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one Sale entry per animal (uq_ledger_sale_per_animal, a
      partial unique index on both PostgreSQL and SQLite).
    - net_profit, gross_profit, total_cost, caretaker_share and
      accrual_status are the source of truth for a sale; description is a
      regenerable rendering of them.
    - accrual_status is set on every Sale: the caretaker share was either
      applied or permanently skipped, never left undecided.

Failure modes:
    - IntegrityError on a second Sale row for the same animal.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from livestock_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from livestock_kernel.domain.entities import LedgerEntryInfo


class LedgerTransaction(TrackedBase):
    """
    One row of the business ledger.

    Guarantees:
        - Sale rows carry accrual_status in {applied, skipped_monthly,
          no_caretaker} (ck_ledger_sale_accrual).
    """

    __tablename__ = "ledger_transactions"

    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('Purchase', 'Sale', 'Expense')",
            name="ck_ledger_transaction_type",
        ),
        CheckConstraint(
            "transaction_type <> 'Sale' OR (accrual_status IS NOT NULL AND "
            "accrual_status IN ('applied', 'skipped_monthly', 'no_caretaker'))",
            name="ck_ledger_sale_accrual",
        ),
        Index(
            "uq_ledger_sale_per_animal",
            "animal_id",
            unique=True,
            postgresql_where=text("transaction_type = 'Sale'"),
            sqlite_where=text("transaction_type = 'Sale'"),
        ),
        Index("idx_ledger_business_date", "business_id", "transaction_date"),
    )

    business_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("businesses.id"),
        nullable=False,
    )
    animal_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    transaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    buyer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    vendor: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Structured sale figures
    net_profit: Mapped[Decimal | None] = mapped_column(nullable=True)
    gross_profit: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    caretaker_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    caretaker_share: Mapped[Decimal | None] = mapped_column(nullable=True)
    accrual_status: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def to_dto(self) -> LedgerEntryInfo:
        """Convert ORM model to frozen domain DTO."""
        from livestock_kernel.domain.entities import (
            AccrualStatus,
            LedgerEntryInfo,
            TransactionType,
        )

        return LedgerEntryInfo(
            id=self.id,
            business_id=self.business_id,
            animal_id=self.animal_id,
            transaction_type=TransactionType(self.transaction_type),
            amount=self.amount,
            transaction_date=self.transaction_date,
            description=self.description,
            buyer=self.buyer,
            vendor=self.vendor,
            net_profit=self.net_profit,
            gross_profit=self.gross_profit,
            total_cost=self.total_cost,
            caretaker_id=self.caretaker_id,
            caretaker_share=self.caretaker_share,
            accrual_status=(
                AccrualStatus(self.accrual_status) if self.accrual_status else None
            ),
        )

    def __repr__(self) -> str:
        return f"<LedgerTransaction {self.transaction_type} {self.amount} {self.transaction_date}>"
