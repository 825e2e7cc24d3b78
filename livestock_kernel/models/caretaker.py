"""
Module: livestock_kernel.models.caretaker
Responsibility: ORM persistence for caretakers, their payment model and the
    accrued earnings written at sale time.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - payment_type and payment_amount are both set or both NULL.  NULL is
      allowed only for legacy rows awaiting migrate_payment_models().
    - total_earnings only moves through the sale coordinator's accrual step.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from livestock_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from livestock_kernel.domain.entities import CaretakerInfo


class Caretaker(TrackedBase):
    """A person who looks after animals and is paid under a payment model."""

    __tablename__ = "caretakers"

    __table_args__ = (
        CheckConstraint(
            "payment_type IS NULL OR payment_type IN ('percentage', 'monthly')",
            name="ck_caretaker_payment_type",
        ),
        CheckConstraint(
            "(payment_type IS NULL) = (payment_amount IS NULL)",
            name="ck_caretaker_payment_model_pair",
        ),
        Index("idx_caretaker_business", "business_id"),
    )

    business_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("businesses.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    payment_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    payment_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    total_earnings: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    def to_dto(self) -> CaretakerInfo:
        """Convert ORM model to frozen domain DTO."""
        from livestock_kernel.domain.entities import CaretakerInfo, PaymentModel

        payment_model = None
        if self.payment_type is not None:
            payment_model = PaymentModel(type=self.payment_type, amount=self.payment_amount)

        return CaretakerInfo(
            id=self.id,
            business_id=self.business_id,
            name=self.name,
            payment_model=payment_model,
            total_earnings=self.total_earnings,
            phone=self.phone,
            email=self.email,
        )

    def __repr__(self) -> str:
        return f"<Caretaker {self.name} ({self.payment_type or 'no model'})>"
