"""
Module: livestock_kernel.models.animal
Responsibility: ORM persistence for individual animals and their sale fields.
Architecture position: Kernel > Models.  May import from db/base.py only
    (domain DTOs are imported lazily inside to_dto()).

Invariants enforced:
    - status is one of Active / Sold / Deceased / Archived.
    - sale_price and sale_date are both present iff status = 'Sold'
      (ck_animal_sale_fields).  A half-written sale cannot be persisted.
    - tag_number is unique within a business.
    - current_weight is a cache of the latest weight record, maintained by
      HerdService.record_weight; nothing else writes it after intake.

Failure modes:
    - IntegrityError on duplicate (business_id, tag_number).
    - IntegrityError when sale fields disagree with status.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from livestock_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from livestock_kernel.domain.entities import AnimalInfo


class Animal(TrackedBase):
    """
    One animal owned by a business.

    Contract:
        Active -> Sold is performed only by the sale coordinator, which
        writes status, sale_price and sale_date in one flush.
        Active -> Deceased / Archived is a plain status write.
    """

    __tablename__ = "animals"

    __table_args__ = (
        UniqueConstraint("business_id", "tag_number", name="uq_animal_business_tag"),
        CheckConstraint(
            "status IN ('Active', 'Sold', 'Deceased', 'Archived')",
            name="ck_animal_status",
        ),
        CheckConstraint(
            "(status = 'Sold' AND sale_price IS NOT NULL AND sale_date IS NOT NULL) "
            "OR (status <> 'Sold' AND sale_price IS NULL AND sale_date IS NULL)",
            name="ck_animal_sale_fields",
        ),
        CheckConstraint("purchase_price >= 0", name="ck_animal_purchase_price"),
        Index("idx_animal_business_status", "business_id", "status"),
        Index("idx_animal_caretaker", "caretaker_id"),
    )

    business_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("businesses.id"),
        nullable=False,
    )

    tag_number: Mapped[str] = mapped_column(String(50), nullable=False)
    nickname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    breed: Mapped[str] = mapped_column(String(100), nullable=False)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)

    current_weight: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")

    caretaker_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("caretakers.id"),
        nullable=True,
    )

    purchase_price: Mapped[Decimal] = mapped_column(nullable=False)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Set together by the sale path
    sale_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    sale_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def to_dto(self) -> AnimalInfo:
        """Convert ORM model to frozen domain DTO."""
        from livestock_kernel.domain.entities import AnimalInfo

        return AnimalInfo(
            id=self.id,
            business_id=self.business_id,
            tag_number=self.tag_number,
            breed=self.breed,
            gender=self.gender,
            purchase_price=self.purchase_price,
            purchase_date=self.purchase_date,
            current_weight=self.current_weight,
            status=self.status,
            caretaker_id=self.caretaker_id,
            sale_price=self.sale_price,
            sale_date=self.sale_date,
            nickname=self.nickname,
            date_of_birth=self.date_of_birth,
            color=self.color,
        )

    def __repr__(self) -> str:
        return f"<Animal {self.tag_number} ({self.status})>"
