"""
Module: livestock_kernel.models.business
Responsibility: ORM persistence for a livestock business, the ownership root
    of every other record.
Architecture position: Kernel > Models.  May import from db/base.py only
    (domain DTOs are imported lazily inside to_dto()).

Invariants enforced:
    - payment_model_type is one of 'percentage' / 'monthly'.
    - The business-level payment model is a legacy default.  It seeds new
      caretakers and is copied onto legacy caretakers by an explicit
      migration; earnings are never computed from it.

Failure modes:
    - IntegrityError on an invalid payment_model_type.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from livestock_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from livestock_kernel.domain.entities import BusinessInfo


class Business(TrackedBase):
    """
    A livestock business.

    The row is also the serialization point for sales: the sale path takes
    ``SELECT ... FOR UPDATE`` on it before reading the allocation snapshot.
    """

    __tablename__ = "businesses"

    __table_args__ = (
        CheckConstraint(
            "payment_model_type IN ('percentage', 'monthly')",
            name="ck_business_payment_model_type",
        ),
        CheckConstraint(
            "payment_model_amount >= 0",
            name="ck_business_payment_model_amount",
        ),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # ISO 4217 code
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")

    # Legacy default payment model
    payment_model_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="percentage",
    )
    payment_model_amount: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("15"),
    )

    def to_dto(self) -> BusinessInfo:
        """Convert ORM model to frozen domain DTO."""
        from livestock_kernel.domain.entities import BusinessInfo, PaymentModel

        return BusinessInfo(
            id=self.id,
            name=self.name,
            currency=self.currency,
            default_payment_model=PaymentModel(
                type=self.payment_model_type,
                amount=self.payment_model_amount,
            ),
        )

    def __repr__(self) -> str:
        return f"<Business {self.name} ({self.currency})>"
